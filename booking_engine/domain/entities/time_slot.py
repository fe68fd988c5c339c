from __future__ import annotations

from dataclasses import dataclass


MORNING = "morning"
AFTERNOON = "afternoon"


@dataclass(frozen=True)
class TimeSlot:
    time: str  # canonical 24h start, "HH:MM"
    display: str  # "8:00 AM - 9:00 AM"
    period: str  # "morning" | "afternoon"

    @property
    def hour(self) -> int:
        return int(self.time.split(":")[0])
