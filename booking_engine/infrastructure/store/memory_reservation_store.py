from __future__ import annotations

import asyncio
import uuid
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable

from booking_engine.application.exceptions import ReservationStoreError
from booking_engine.application.ports.practitioner_directory import PractitionerDirectoryPort
from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.domain.entities.reservation import (
    BLOCKED_REASON,
    STATUS_CONFIRMED,
    Reservation,
)

SLOT_TAKEN = "Time slot is already booked"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryReservationStore(ReservationStorePort):
    """In-process reservation store.

    Enforces at most one confirmed reservation per (practitioner, date, time).
    Names are filled in from the directory when one is given.
    """

    def __init__(
        self,
        directory: PractitionerDirectoryPort | None = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._rows: dict[str, Reservation] = {}
        self._lock = asyncio.Lock()
        self._directory = directory
        self._now = now

    async def list_reservations(
        self,
        practitioner_id: str | None = None,
        patient_id: str | None = None,
        on_date: date | None = None,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Reservation]:
        rows = list(self._rows.values())
        if practitioner_id:
            rows = [r for r in rows if r.practitioner_id == practitioner_id]
        if patient_id:
            rows = [r for r in rows if r.patient_id == patient_id]
        if on_date:
            rows = [r for r in rows if r.date == on_date]
        else:
            if start_date:
                rows = [r for r in rows if r.date >= start_date]
            if end_date:
                rows = [r for r in rows if r.date <= end_date]
        if status:
            rows = [r for r in rows if r.status == status]

        rows.sort(key=lambda r: (r.date, r.time))
        return [await self._with_names(r) for r in rows]

    async def create_reservation(self, reservation: Reservation) -> Reservation:
        async with self._lock:
            row = self._prepare(reservation)
            if self._slot_taken(row):
                raise ReservationStoreError(SLOT_TAKEN, status_code=409)
            self._rows[row.id] = row
        return await self._with_names(row)

    async def update_reservation(
        self,
        reservation_id: str,
        status: str | None = None,
        reason: str | None = None,
    ) -> Reservation:
        async with self._lock:
            row = self._rows.get(reservation_id)
            if row is None:
                raise ReservationStoreError(f"Booking {reservation_id} not found", status_code=404)
            changes: dict[str, object] = {"updated_at": self._now().isoformat()}
            if status:
                changes["status"] = status
            if reason is not None:
                changes["reason"] = reason
            row = replace(row, **changes)
            self._rows[reservation_id] = row
        return await self._with_names(row)

    async def reschedule_group(self, book_number: str, reservations: list[Reservation]) -> list[Reservation]:
        async with self._lock:
            previous = {k: v for k, v in self._rows.items() if v.book_number == book_number}
            for key in previous:
                del self._rows[key]

            created: list[Reservation] = []
            for reservation in reservations:
                row = self._prepare(replace(reservation, book_number=book_number))
                if self._slot_taken(row):
                    # All-or-nothing: put the old group back
                    for new_row in created:
                        del self._rows[new_row.id]
                    self._rows.update(previous)
                    raise ReservationStoreError(SLOT_TAKEN, status_code=409)
                self._rows[row.id] = row
                created.append(row)
        return [await self._with_names(r) for r in created]

    async def delete_group(self, book_number: str) -> list[Reservation]:
        async with self._lock:
            removed = [r for r in self._rows.values() if r.book_number == book_number]
            for row in removed:
                del self._rows[row.id]
        return removed

    async def delete_reservation(self, reservation_id: str) -> list[Reservation]:
        async with self._lock:
            row = self._rows.pop(reservation_id, None)
        return [row] if row else []

    def _prepare(self, reservation: Reservation) -> Reservation:
        stamp = self._now().isoformat()
        row = replace(
            reservation,
            id=str(uuid.uuid4()),
            status=STATUS_CONFIRMED,
            created_at=stamp,
            updated_at=stamp,
            patient_name=None,
            practitioner_name=None,
        )
        if row.is_blocked:
            row = replace(row, patient_id=None, price=None, reason=BLOCKED_REASON, book_number=None)
        return row

    def _slot_taken(self, row: Reservation) -> bool:
        return any(
            r.practitioner_id == row.practitioner_id
            and r.date == row.date
            and r.time == row.time
            and r.status == STATUS_CONFIRMED
            for r in self._rows.values()
        )

    async def _with_names(self, row: Reservation) -> Reservation:
        if self._directory is None:
            return row
        patient_name = await self._directory.get_display_name(row.patient_id) if row.patient_id else None
        practitioner_name = await self._directory.get_display_name(row.practitioner_id)
        return replace(row, patient_name=patient_name, practitioner_name=practitioner_name)
