"""Normalization helpers.

Centralizes defensive parsing of the loosely typed ``/INFO`` JSON.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def safe_bool(value: Any) -> bool | None:
    """Accept JSON booleans plus the ``0``/``1`` and ``"true"``/``"false"`` spellings."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return None


def string_list(value: Any) -> list[str]:
    """Coerce a JSON array into a list of non-empty strings; anything else is empty."""
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for item in value:
        text = safe_str(item)
        if text is not None:
            items.append(text)
    return items


def int_list(value: Any) -> list[int]:
    if not isinstance(value, list):
        return []
    items: list[int] = []
    for item in value:
        parsed = safe_int(item)
        if parsed is not None:
            items.append(parsed)
    return items
