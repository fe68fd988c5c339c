from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.application.use_cases.service_options import parse_service_descriptor
from booking_engine.application.use_cases.selection import SelectionAccumulator
from booking_engine.application.utils.state_helpers import reset_wizard_state
from booking_engine.domain.entities.reservation import STATUS_CONFIRMED, Reservation
from booking_engine.domain.entities.wizard_state import IntakeForm, WizardState


@dataclass(frozen=True)
class AppointmentLine:
    display_date: str
    display_time: str
    price: float


@dataclass(frozen=True)
class ConfirmationSummary:
    book_number: str | None
    service: str
    appointments: tuple[AppointmentLine, ...]
    failed: tuple[str, ...] = ()

    @property
    def count(self) -> int:
        return len(self.appointments)

    @property
    def total_price(self) -> float:
        return sum(line.price for line in self.appointments)


def build_confirmation_summary(state: WizardState, failed: tuple[str, ...] = ()) -> ConfirmationSummary:
    service = state.selected_service
    price = service.price if service else 0
    return ConfirmationSummary(
        book_number=state.book_number,
        service=service.descriptor if service else "",
        appointments=tuple(
            AppointmentLine(display_date=s.display_date, display_time=s.display_time, price=price)
            for s in state.selections
        ),
        failed=failed,
    )


class ConfirmationRecovery:
    """Rebuild the confirmation view from the store after the cache was cleared."""

    def __init__(self, store: ReservationStorePort) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)

    async def recover(self, practitioner_id: str, patient_id: str) -> WizardState | None:
        reservations = await self._store.list_reservations(
            practitioner_id=practitioner_id,
            patient_id=patient_id,
            status=STATUS_CONFIRMED,
        )
        grouped = [r for r in reservations if r.book_number and not r.is_blocked]
        if not grouped:
            return None

        latest = max(grouped, key=lambda r: r.created_at or "")
        group = [r for r in grouped if r.book_number == latest.book_number]
        self._logger.info(
            "Recovered confirmation from store",
            extra={"practitioner_id": practitioner_id, "book_number": latest.book_number, "count": len(group)},
        )
        return _state_from_group(group)


def _state_from_group(group: list[Reservation]) -> WizardState:
    first = group[0]
    cart = SelectionAccumulator()
    for reservation in sorted(group, key=lambda r: (r.date, r.time)):
        cart.toggle(reservation.date, reservation.time)

    return replace(
        reset_wizard_state(),
        selected_service=parse_service_descriptor(first.service_type, first.price),
        selections=cart.selections,
        form_data=IntakeForm(reason_for_visit=first.reason or ""),
        consent_agreed=True,
        policy_agreed=True,
        book_number=first.book_number,
    )
