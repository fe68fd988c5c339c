from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from booking_engine.application.exceptions import (
    BookingEngineError,
    PartialSubmissionFailure,
    ReservationStoreError,
    RescheduleFailed,
    ValidationFailed,
)
from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.application.utils.booking_reference import new_booking_reference
from booking_engine.application.utils.clock import Clock
from booking_engine.domain.entities.reservation import STATUS_CONFIRMED, Reservation
from booking_engine.domain.entities.selection import Selection
from booking_engine.domain.entities.wizard_state import WizardState

MODE_CREATE = "create"
MODE_RESCHEDULE = "reschedule"


@dataclass(frozen=True)
class SlotFailure:
    selection: Selection
    error: str

    @property
    def message(self) -> str:
        return f"Failed to book {self.selection.date.isoformat()} {self.selection.display_time}: {self.error}"


@dataclass(frozen=True)
class SubmissionOutcome:
    success: bool
    mode: str
    book_number: str | None
    message: str
    created: list[Reservation] = field(default_factory=list)
    failed: list[SlotFailure] = field(default_factory=list)
    error: BookingEngineError | None = None


class BookingSubmissionCoordinator:
    """Turn the wizard's cart into reservations sharing one booking reference.

    Create mode fans out one create per selection and waits for all of them to
    settle; successful creates are never rolled back. Reschedule mode replaces the
    whole group in a single bulk request.
    """

    def __init__(
        self,
        store: ReservationStorePort,
        clock: Clock,
        reference_factory: Callable[[datetime], str] = new_booking_reference,
    ) -> None:
        self._store = store
        self._clock = clock
        self._reference_factory = reference_factory
        self._logger = logging.getLogger(__name__)

    async def submit(self, practitioner_id: str, patient_id: str, state: WizardState) -> SubmissionOutcome:
        if not state.ready_for_submission:
            error = ValidationFailed("Please complete all required fields before booking.")
            return SubmissionOutcome(success=False, mode=MODE_CREATE, book_number=None, message=error.message, error=error)

        if state.reschedule_mode and state.book_number:
            return await self._reschedule(practitioner_id, patient_id, state)
        return await self._create(practitioner_id, patient_id, state)

    async def _create(self, practitioner_id: str, patient_id: str, state: WizardState) -> SubmissionOutcome:
        book_number = self._reference_factory(self._clock())
        selections = list(state.selections)
        drafts = [self._build_reservation(practitioner_id, patient_id, state, s, book_number) for s in selections]

        # All-settled join: one failing slot must not hide which others succeeded
        results = await asyncio.gather(
            *(self._store.create_reservation(draft) for draft in drafts),
            return_exceptions=True,
        )

        created: list[Reservation] = []
        failed: list[SlotFailure] = []
        for selection, result in zip(selections, results):
            if isinstance(result, ReservationStoreError):
                failed.append(SlotFailure(selection=selection, error=result.detail))
            elif isinstance(result, Exception):
                failed.append(SlotFailure(selection=selection, error=str(result) or type(result).__name__))
            elif isinstance(result, BaseException):
                raise result
            else:
                created.append(result)

        if failed:
            message = "; ".join(f.message for f in failed)
            error = PartialSubmissionFailure(message, created=created, failed=[f.message for f in failed])
            self._logger.error(
                "Booking submission partially failed",
                extra={
                    "practitioner_id": practitioner_id,
                    "book_number": book_number,
                    "count": len(created),
                    "error": message,
                },
            )
            return SubmissionOutcome(
                success=False,
                mode=MODE_CREATE,
                book_number=book_number,
                message=message,
                created=created,
                failed=failed,
                error=error,
            )

        count = len(created)
        self._logger.info(
            "Bookings created",
            extra={"practitioner_id": practitioner_id, "book_number": book_number, "count": count},
        )
        return SubmissionOutcome(
            success=True,
            mode=MODE_CREATE,
            book_number=book_number,
            message=f"{count} booking{'s' if count != 1 else ''} created successfully!",
            created=created,
        )

    async def _reschedule(self, practitioner_id: str, patient_id: str, state: WizardState) -> SubmissionOutcome:
        book_number = state.book_number
        drafts = [
            self._build_reservation(practitioner_id, patient_id, state, s, book_number)
            for s in state.selections
        ]
        try:
            rows = await self._store.reschedule_group(book_number, drafts)
        except ReservationStoreError as e:
            error = RescheduleFailed(f"Failed to reschedule booking: {e.detail}")
            self._logger.error(
                "Reschedule failed",
                extra={"practitioner_id": practitioner_id, "book_number": book_number, "error": e.detail},
            )
            return SubmissionOutcome(
                success=False,
                mode=MODE_RESCHEDULE,
                book_number=book_number,
                message=error.message,
                error=error,
            )

        self._logger.info(
            "Booking rescheduled",
            extra={"practitioner_id": practitioner_id, "book_number": book_number, "count": len(rows)},
        )
        return SubmissionOutcome(
            success=True,
            mode=MODE_RESCHEDULE,
            book_number=book_number,
            message=f"Successfully rescheduled {len(rows)} bookings!",
            created=rows,
        )

    def _build_reservation(
        self,
        practitioner_id: str,
        patient_id: str,
        state: WizardState,
        selection: Selection,
        book_number: str,
    ) -> Reservation:
        service = state.selected_service
        return Reservation(
            practitioner_id=practitioner_id,
            patient_id=patient_id,
            date=selection.date,
            time=selection.time,
            service_type=service.descriptor,
            price=service.price,
            reason=state.form_data.reason_for_visit or None,
            status=STATUS_CONFIRMED,
            book_number=book_number,
        )
