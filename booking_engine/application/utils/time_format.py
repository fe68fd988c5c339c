from __future__ import annotations

import re
from datetime import date

_CANONICAL_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_DISPLAY_RE = re.compile(
    r"^\s*(\d{1,2}):(\d{2})\s*(am|pm)\s*-\s*(\d{1,2}):(\d{2})\s*(am|pm)\s*$",
    re.IGNORECASE,
)


def parse_canonical_hour(time: str) -> int:
    """Parse an hourly 24h "HH:MM" time. Returns the hour (0-23)."""
    match = _CANONICAL_RE.match(time.strip()) if isinstance(time, str) else None
    if not match:
        raise ValueError(f"Invalid time format: {time!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not 0 <= hour <= 23 or minute != 0:
        raise ValueError(f"Not an hourly slot time: {time!r}")
    return hour


def is_canonical_time(value: str) -> bool:
    try:
        parse_canonical_hour(value)
    except ValueError:
        return False
    return True


def format_canonical(hour: int) -> str:
    return f"{hour:02d}:00"


def _twelve_hour_label(hour: int) -> str:
    # hour 0 and hour 12 both read "12", told apart by the AM/PM suffix
    hour = hour % 24
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:00 {suffix}"


def _to_24h(hour: int, am_pm: str) -> int:
    if not 1 <= hour <= 12:
        raise ValueError(f"Invalid 12-hour clock value: {hour}")
    if am_pm == "am":
        return 0 if hour == 12 else hour
    return 12 if hour == 12 else hour + 12


def canonical_to_display(time: str) -> str:
    """"08:00" -> "8:00 AM - 9:00 AM", "14:00" -> "2:00 PM - 3:00 PM"."""
    hour = parse_canonical_hour(time)
    return f"{_twelve_hour_label(hour)} - {_twelve_hour_label(hour + 1)}"


def display_to_canonical(display: str) -> str:
    """"8:00 AM - 9:00 AM" -> "08:00". Exact inverse of canonical_to_display."""
    match = _DISPLAY_RE.match(display) if isinstance(display, str) else None
    if not match:
        raise ValueError(f"Invalid display time: {display!r}")
    if match.group(2) != "00" or match.group(5) != "00":
        raise ValueError(f"Not an hourly slot: {display!r}")

    start = _to_24h(int(match.group(1)), match.group(3).lower())
    end = _to_24h(int(match.group(4)), match.group(6).lower())
    if end != (start + 1) % 24:
        raise ValueError(f"Slot must span exactly one hour: {display!r}")
    return format_canonical(start)


def to_canonical(value: str) -> str:
    """Accept either form and return the canonical time."""
    if is_canonical_time(value):
        return format_canonical(parse_canonical_hour(value))
    return display_to_canonical(value)


def format_api_date(value: date) -> str:
    # Built from the civil date fields; never shifted through UTC
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_api_date(value: str) -> date:
    return date.fromisoformat(value.strip())


def format_display_date(value: date) -> str:
    """date(2025, 3, 10) -> "Mon, Mar 10, 2025"."""
    return f"{value.strftime('%a')}, {value.strftime('%b')} {value.day}, {value.year}"
