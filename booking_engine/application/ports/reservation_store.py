from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from booking_engine.domain.entities.reservation import Reservation


class ReservationStorePort(ABC):
    @abstractmethod
    async def list_reservations(
        self,
        practitioner_id: str | None = None,
        patient_id: str | None = None,
        on_date: date | None = None,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Reservation]:
        """List reservations matching every given filter, ordered by date then time.

        on_date wins over the start_date/end_date range when both are given.
        """
        raise NotImplementedError

    @abstractmethod
    async def create_reservation(self, reservation: Reservation) -> Reservation:
        """Create one reservation. Raises ReservationStoreError(409) if the slot is taken."""
        raise NotImplementedError

    @abstractmethod
    async def update_reservation(
        self,
        reservation_id: str,
        status: str | None = None,
        reason: str | None = None,
    ) -> Reservation:
        """Change the status and/or reason of a single reservation."""
        raise NotImplementedError

    @abstractmethod
    async def reschedule_group(self, book_number: str, reservations: list[Reservation]) -> list[Reservation]:
        """Replace every reservation of a booking reference in one request."""
        raise NotImplementedError

    @abstractmethod
    async def delete_group(self, book_number: str) -> list[Reservation]:
        """Delete every reservation sharing the booking reference. Returns the removed rows."""
        raise NotImplementedError

    @abstractmethod
    async def delete_reservation(self, reservation_id: str) -> list[Reservation]:
        """Delete a single reservation by id (used for blocked slots)."""
        raise NotImplementedError
