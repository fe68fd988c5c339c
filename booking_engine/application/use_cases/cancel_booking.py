from __future__ import annotations

import logging
from dataclasses import dataclass, field

from booking_engine.application.exceptions import CancellationFailed, ReservationStoreError
from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.domain.entities.reservation import Reservation


@dataclass(frozen=True)
class CancellationOutcome:
    success: bool
    book_number: str
    message: str
    cancelled: list[Reservation] = field(default_factory=list)
    error: CancellationFailed | None = None

    @property
    def count(self) -> int:
        return len(self.cancelled)


class CancellationCoordinator:
    """Bulk-remove every reservation sharing a booking reference.

    The caller is responsible for the explicit user confirmation.
    """

    def __init__(self, store: ReservationStorePort) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)

    async def cancel(self, book_number: str) -> CancellationOutcome:
        try:
            removed = await self._store.delete_group(book_number)
        except ReservationStoreError as e:
            self._logger.error("Cancellation failed", extra={"book_number": book_number, "error": e.detail})
            error = CancellationFailed(f"Failed to cancel booking: {e.detail}")
            return CancellationOutcome(success=False, book_number=book_number, message=error.message, error=error)

        if not removed:
            self._logger.warning("Cancellation removed nothing", extra={"book_number": book_number})
            error = CancellationFailed(f"Failed to cancel booking: no bookings found for {book_number}")
            return CancellationOutcome(success=False, book_number=book_number, message=error.message, error=error)

        self._logger.info("Booking cancelled", extra={"book_number": book_number, "count": len(removed)})
        return CancellationOutcome(
            success=True,
            book_number=book_number,
            message=f"Successfully cancelled {len(removed)} bookings",
            cancelled=removed,
        )
