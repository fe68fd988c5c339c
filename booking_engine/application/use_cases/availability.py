from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime

from booking_engine.application.exceptions import AvailabilityFetchFailed, ReservationStoreError
from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.application.use_cases.slot_grid import generate_slot_grid
from booking_engine.application.utils.clock import Clock
from booking_engine.domain.entities.reservation import STATUS_CONFIRMED, Reservation
from booking_engine.domain.entities.slot_status import (
    Available,
    Conflicted,
    DayAvailability,
    Occupied,
    SlotStatus,
    SlotView,
)
from booking_engine.domain.entities.time_slot import MORNING

UNKNOWN_PATIENT = "Patient"
UNKNOWN_PRACTITIONER = "Unknown Practitioner"
LOADING_FAILED_MESSAGE = "Could not load availability. Please try again."


class AvailabilityResolver:
    """Classify every grid slot of a day as available, occupied or conflicted.

    The requesting patient is passed in explicitly; None means anonymous browsing,
    in which case no patient conflicts are looked up.
    """

    def __init__(
        self,
        store: ReservationStorePort,
        clock: Clock,
        morning_cutoff_hour: int = 12,
    ) -> None:
        self._store = store
        self._clock = clock
        self._morning_cutoff_hour = morning_cutoff_hour
        self._logger = logging.getLogger(__name__)

    async def resolve(
        self,
        practitioner_id: str,
        target_date: date,
        patient_id: str | None = None,
    ) -> DayAvailability:
        now = self._clock()
        today = now.date()

        if target_date < today:
            return DayAvailability(date=target_date, past_date=True)

        try:
            practitioner_bookings, patient_bookings = await self._fetch(practitioner_id, target_date, patient_id)
        except AvailabilityFetchFailed as e:
            self._logger.error(
                "Availability fetch failed",
                extra={"practitioner_id": practitioner_id, "date": target_date.isoformat(), "error": e.message},
            )
            # Fail closed: nothing is offered as bookable
            return DayAvailability(date=target_date, loading_failed=True, errors=(LOADING_FAILED_MESSAGE,))

        occupied = _occupied_by_time(practitioner_bookings)
        conflicts = _conflicts_by_time(patient_bookings, practitioner_id)
        cutoff = self._morning_cutoff_applies(target_date, now)

        morning: list[SlotView] = []
        afternoon: list[SlotView] = []
        for slot in generate_slot_grid(target_date):
            if slot.period == MORNING:
                if cutoff:
                    continue
                morning.append(SlotView(slot=slot, status=_classify(slot.time, occupied, conflicts)))
            else:
                afternoon.append(SlotView(slot=slot, status=_classify(slot.time, occupied, conflicts)))

        return DayAvailability(
            date=target_date,
            morning=tuple(morning),
            afternoon=tuple(afternoon),
            morning_cutoff_applied=cutoff,
        )

    def _morning_cutoff_applies(self, target_date: date, now: datetime) -> bool:
        return target_date == now.date() and now.hour >= self._morning_cutoff_hour

    async def _fetch(
        self,
        practitioner_id: str,
        target_date: date,
        patient_id: str | None,
    ) -> tuple[list[Reservation], list[Reservation]]:
        requests = [
            self._store.list_reservations(
                practitioner_id=practitioner_id, on_date=target_date, status=STATUS_CONFIRMED
            )
        ]
        if patient_id:
            requests.append(
                self._store.list_reservations(patient_id=patient_id, on_date=target_date, status=STATUS_CONFIRMED)
            )

        try:
            results = await asyncio.gather(*requests)
        except ReservationStoreError as e:
            raise AvailabilityFetchFailed(e.detail) from e

        practitioner_bookings = results[0]
        patient_bookings = results[1] if patient_id else []
        return practitioner_bookings, patient_bookings


def _occupied_by_time(bookings: list[Reservation]) -> dict[str, Occupied]:
    occupied: dict[str, Occupied] = {}
    for booking in bookings:
        occupied[booking.time] = Occupied(
            blocked=booking.is_blocked,
            service=None if booking.is_blocked else booking.service_type,
            patient_name=None if booking.is_blocked else (booking.patient_name or UNKNOWN_PATIENT),
        )
    return occupied


def _conflicts_by_time(bookings: list[Reservation], practitioner_id: str) -> dict[str, Conflicted]:
    conflicts: dict[str, Conflicted] = {}
    for booking in bookings:
        # A booking already held with this practitioner is not a conflict
        if booking.practitioner_id == practitioner_id:
            continue
        conflicts[booking.time] = Conflicted(
            other_practitioner=booking.practitioner_name or UNKNOWN_PRACTITIONER,
            service=booking.service_type,
        )
    return conflicts


def _classify(time: str, occupied: dict[str, Occupied], conflicts: dict[str, Conflicted]) -> SlotStatus:
    if time in conflicts:
        return conflicts[time]
    if time in occupied:
        return occupied[time]
    return Available()
