"""Prometheus text exposition of an :class:`EngineView`."""

from __future__ import annotations

from acexporter.engine import EngineView
from acexporter.models.server_info import ServerInfo

_GAUGES: tuple[tuple[str, str], ...] = (
    ("ac_server_up", "Server availability (1 = up, 0 = down)"),
    ("ac_server_players", "Current number of connected players"),
    ("ac_server_max_players", "Maximum player capacity"),
    ("ac_server_session", "Current session type (0=Booking, 1=Practice, 2=Qualifying, 3=Race)"),
    ("ac_server_cars_available", "Number of available car models"),
    ("ac_server_password_protected", "Whether server requires password"),
    ("ac_server_pickup_mode", "Whether pickup mode is enabled"),
    ("ac_server_time_left", "Time remaining in current session (seconds)"),
)

_COUNTERS: tuple[tuple[str, str, str], ...] = (
    ("ac_server_lap_completed_total", "Total laps completed", "laps"),
    ("ac_server_collisions_total", "Total collision events", "collisions"),
    ("ac_server_connections_total", "Total player connections", "connections"),
    ("ac_server_disconnections_total", "Total player disconnections", "disconnections"),
)

# Emitted instead of the labeled gauges while no snapshot has ever succeeded.
_DOWN_SENTINEL: tuple[str, ...] = (
    "ac_server_up 0",
    "ac_server_players 0",
    "ac_server_max_players 0",
)


def escape_label_value(value: str) -> str:
    """Escape backslash, double quote and newline for a label value."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _gauge_values(info: ServerInfo) -> dict[str, int]:
    return {
        "ac_server_up": 1,
        "ac_server_players": info.clients,
        "ac_server_max_players": info.max_clients,
        "ac_server_session": info.session,
        "ac_server_cars_available": len(info.cars),
        "ac_server_password_protected": int(info.password_protected),
        "ac_server_pickup_mode": int(info.pickup_mode),
        "ac_server_time_left": info.time_left,
    }


def render_metrics(view: EngineView) -> str:
    """Render all metric families for ``view``.

    Gauges come from the last good snapshot; counters are always present.
    """
    lines: list[str] = []
    for name, help_text in _GAUGES:
        lines.append(f"# HELP {name} {help_text}")
        lines.append(f"# TYPE {name} gauge")
    for name, help_text, _ in _COUNTERS:
        lines.append(f"# HELP {name} {help_text}")
        lines.append(f"# TYPE {name} counter")

    info = view.context.snapshot
    if info is not None:
        labels = (
            f'server_name="{escape_label_value(info.name)}",'
            f'track="{escape_label_value(info.track)}",'
            f'powered_by="{escape_label_value(info.powered_by)}"'
        )
        values = _gauge_values(info)
        for name, _ in _GAUGES:
            lines.append(f"{name}{{{labels}}} {values[name]}")
    else:
        lines.extend(_DOWN_SENTINEL)

    counters = view.counters
    for name, _, attr in _COUNTERS:
        lines.append(f"{name} {getattr(counters, attr)}")

    return "\n".join(lines) + "\n"
