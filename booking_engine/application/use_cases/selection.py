from __future__ import annotations

from datetime import date
from typing import Iterable, Iterator

from booking_engine.application.utils.time_format import (
    canonical_to_display,
    format_display_date,
    to_canonical,
)
from booking_engine.domain.entities.selection import Selection
from booking_engine.domain.entities.time_slot import TimeSlot


class SelectionAccumulator:
    """Ordered cart of (date, slot) selections, at most one entry per (date, canonical time).

    toggle() is the only mutation besides clear().
    """

    def __init__(self, selections: Iterable[Selection] = ()) -> None:
        self._selections: list[Selection] = []
        for selection in selections:
            if not self.is_selected(selection.date, selection.time):
                self._selections.append(selection)

    @property
    def selections(self) -> tuple[Selection, ...]:
        return tuple(self._selections)

    def __len__(self) -> int:
        return len(self._selections)

    def __iter__(self) -> Iterator[Selection]:
        return iter(self._selections)

    def toggle(self, on_date: date, slot: TimeSlot | str) -> bool:
        """Remove the selection if present, append it otherwise.

        `slot` may be a TimeSlot, a canonical "HH:MM" or a display "8:00 AM - 9:00 AM".
        Returns True if the slot is selected after the call.
        """
        time = _canonical(slot)
        for index, existing in enumerate(self._selections):
            if existing.date == on_date and existing.time == time:
                del self._selections[index]
                return False

        self._selections.append(
            Selection(
                date=on_date,
                time=time,
                display_date=format_display_date(on_date),
                display_time=canonical_to_display(time),
            )
        )
        return True

    def is_selected(self, on_date: date, slot: TimeSlot | str) -> bool:
        time = _canonical(slot)
        return any(s.date == on_date and s.time == time for s in self._selections)

    def date_has_selections(self, on_date: date) -> bool:
        return any(s.date == on_date for s in self._selections)

    def clear(self) -> None:
        self._selections.clear()


def _canonical(slot: TimeSlot | str) -> str:
    if isinstance(slot, TimeSlot):
        return slot.time
    return to_canonical(slot)
