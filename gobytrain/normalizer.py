"""Canonical conversions between display strings and comparable numbers.

Every helper here is total: malformed input maps to a documented fallback
instead of raising, so the ranking pipeline can compare heterogeneous
records (generated itineraries, or loosely typed rows echoed back by a
front end) without guarding each call.
"""
from __future__ import annotations

import math
import re
from typing import Any, Optional

MINUTES_PER_DAY = 24 * 60

# Excludes records with an unreadable duration from any max-duration filter.
UNKNOWN_DURATION_MINUTES = 99999

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{1,2})\s*$")
_DURATION_RE = re.compile(r"(\d+)\s*h.*?(\d+)\s*m", re.IGNORECASE)
_PRICE_STRIP_RE = re.compile(r"[^\d.]")


def time_to_minutes(value: Any) -> int:
    """``"HH:MM"`` -> minutes since midnight; 0 when unreadable."""
    if not isinstance(value, str):
        return 0
    m = _TIME_RE.match(value)
    if not m:
        return 0
    return int(m.group(1)) * 60 + int(m.group(2))


def is_clock_time(value: Any) -> bool:
    return isinstance(value, str) and _TIME_RE.match(value) is not None


def format_time(minutes: int) -> str:
    minutes = int(minutes) % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_duration_label(label: Any) -> Optional[int]:
    if not isinstance(label, str):
        return None
    m = _DURATION_RE.search(label)
    if not m:
        return None
    return int(m.group(1)) * 60 + int(m.group(2))


def duration_minutes(departure: Any, arrival: Any, duration_label: Any = None) -> int:
    """Minutes between two wall-clock times, wrapping past midnight.

    Falls back to the ``"7h 20m"`` style label when either time is missing,
    and to 0 when neither source is usable.
    """
    if departure and arrival:
        delta = time_to_minutes(arrival) - time_to_minutes(departure)
        if delta < 0:
            delta += MINUTES_PER_DAY
        return delta
    parsed = parse_duration_label(duration_label)
    return parsed if parsed is not None else 0


def format_duration(minutes: int) -> str:
    minutes = max(0, int(minutes))
    return f"{minutes // 60}h {minutes % 60:02d}m"


def parse_price(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if not isinstance(value, str):
        return 0.0
    cleaned = _PRICE_STRIP_RE.sub("", value)
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def format_price(value: Any, currency: str = "€") -> str:
    """Display form of a price, always carrying the currency prefix once."""
    if isinstance(value, str):
        text = value.strip()
        if text.startswith(currency):
            return text
        return f"{currency}{text}"
    amount = parse_price(value)
    if amount.is_integer():
        return f"{currency}{int(amount)}"
    return f"{currency}{amount:.2f}"


def parse_number(value: Any) -> Optional[float]:
    """Lenient read of a numeric filter input; ``None`` means "not set"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number
