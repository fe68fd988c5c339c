from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Selection:
    """One chosen (date, slot) pair in the booking cart."""

    date: date
    time: str  # canonical "HH:MM"
    display_date: str  # "Mon, Mar 10, 2025"
    display_time: str  # "9:00 AM - 10:00 AM"

    @property
    def key(self) -> tuple[date, str]:
        return (self.date, self.time)
