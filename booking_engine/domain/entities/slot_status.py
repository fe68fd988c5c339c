from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Union

from booking_engine.domain.entities.time_slot import TimeSlot


@dataclass(frozen=True)
class Available:
    kind: Literal["available"] = "available"


@dataclass(frozen=True)
class Occupied:
    blocked: bool
    service: str | None
    patient_name: str | None
    kind: Literal["occupied"] = "occupied"


@dataclass(frozen=True)
class Conflicted:
    other_practitioner: str
    service: str | None
    kind: Literal["conflicted"] = "conflicted"


SlotStatus = Union[Available, Occupied, Conflicted]


@dataclass(frozen=True)
class SlotView:
    slot: TimeSlot
    status: SlotStatus

    @property
    def is_bookable(self) -> bool:
        return isinstance(self.status, Available)


@dataclass(frozen=True)
class DayAvailability:
    date: date
    morning: tuple[SlotView, ...] = ()
    afternoon: tuple[SlotView, ...] = ()
    loading_failed: bool = False  # store fetch failed; retry is possible
    past_date: bool = False
    morning_cutoff_applied: bool = False
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def slots(self) -> tuple[SlotView, ...]:
        return self.morning + self.afternoon

    def available_times(self) -> list[str]:
        return [view.slot.time for view in self.slots if view.is_bookable]

    def status_for(self, time: str) -> SlotStatus | None:
        for view in self.slots:
            if view.slot.time == time:
                return view.status
        return None
