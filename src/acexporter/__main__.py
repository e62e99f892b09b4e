"""Command-line entry point: ``acexporter`` / ``python -m acexporter``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from acexporter.config import ExporterConfig
from acexporter.exceptions import AcExporterError
from acexporter.exporter import AcServerExporter

_logger = logging.getLogger("acexporter")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Prometheus exporter for Assetto Corsa dedicated servers")
    parser.add_argument("--host", default=None, help="Server host (env AC_SERVER_HOST, default 127.0.0.1)")
    parser.add_argument("--udp-port", type=int, default=None, help="Server event-stream UDP port (env AC_SERVER_UDP_PORT)")
    parser.add_argument("--http-port", type=int, default=None, help="Server HTTP port serving /INFO (env AC_SERVER_HTTP_PORT)")
    parser.add_argument("--exporter-port", type=int, default=None, help="Port serving /metrics (env EXPORTER_PORT)")
    parser.add_argument("--poll-interval", type=float, default=None, help="Seconds between poll cycles")
    parser.add_argument("--slot-count", type=int, default=None, help="Number of slots queried per poll cycle")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "host": args.host,
        "udp_port": args.udp_port,
        "http_port": args.http_port,
        "exporter_port": args.exporter_port,
        "poll_interval": args.poll_interval,
        "slot_count": args.slot_count,
    }


async def _run(config: ExporterConfig) -> None:
    _logger.info(
        "Starting exporter for %s (UDP %d, HTTP %d)",
        config.host,
        config.udp_port,
        config.http_port,
    )
    async with AcServerExporter(config) as exporter:
        await exporter.serve_forever()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ExporterConfig.from_env(**_overrides(args))
        asyncio.run(_run(config))
    except AcExporterError as exc:
        print(f"acexporter: {exc}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        _logger.info("Shutting down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
