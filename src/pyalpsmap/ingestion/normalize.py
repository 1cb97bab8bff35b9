"""Normalization helpers.

Centralizes defensive parsing of loosely typed upstream values
(OSM tags, elevation strings, weather fields).
"""

from __future__ import annotations

import math
import re
from typing import Any

# OSM ``ele`` tags are sometimes written as "3180 m" or "3,180".
_LEADING_NUMBER = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    if isinstance(value, bool):
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
    text = str(value).strip()
    return text if text else None


def parse_ele_tag(value: Any) -> float | None:
    """Parse an OSM ``ele`` tag into metres.

    Accepts plain numbers, thousands separators and a trailing unit.
    """
    direct = safe_float(value)
    if direct is not None:
        return direct
    text = safe_str(value)
    if text is None:
        return None
    match = _LEADING_NUMBER.match(text.replace(",", ""))
    if match is None:
        return None
    return safe_float(match.group(1))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (``2.5 -> 3``, ``-2.5 -> -2``)."""
    return math.floor(value + 0.5)
