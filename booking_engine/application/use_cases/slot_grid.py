from __future__ import annotations

from datetime import date

from booking_engine.application.utils.time_format import canonical_to_display
from booking_engine.domain.entities.time_slot import AFTERNOON, MORNING, TimeSlot

MORNING_TIMES = ("08:00", "09:00", "10:00", "11:00")
AFTERNOON_TIMES = ("14:00", "15:00", "16:00", "17:00")

_GRID: tuple[TimeSlot, ...] = tuple(
    [TimeSlot(time=t, display=canonical_to_display(t), period=MORNING) for t in MORNING_TIMES]
    + [TimeSlot(time=t, display=canonical_to_display(t), period=AFTERNOON) for t in AFTERNOON_TIMES]
)


def generate_slot_grid(target_date: date | None = None) -> list[TimeSlot]:
    """Return the full bookable grid for a civil date: 4 morning + 4 afternoon hourly slots.

    The grid is the same for every date. Filtering (past slots, the "today"
    morning cutoff, existing reservations) is the availability resolver's job.
    """
    return list(_GRID)


def is_grid_time(time: str) -> bool:
    return time in MORNING_TIMES or time in AFTERNOON_TIMES
