from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from booking_engine.application.exceptions import (
    CancellationFailed,
    PartialSubmissionFailure,
    ReservationStoreError,
    RescheduleFailed,
)
from booking_engine.application.use_cases.cancel_booking import CancellationCoordinator
from booking_engine.application.use_cases.confirmation import ConfirmationRecovery, build_confirmation_summary
from booking_engine.application.use_cases.selection import SelectionAccumulator
from booking_engine.application.use_cases.submit_booking import BookingSubmissionCoordinator
from booking_engine.domain.entities.practitioner import SelectedService
from booking_engine.domain.entities.reservation import Reservation
from booking_engine.domain.entities.wizard_state import IntakeForm, WizardState
from booking_engine.infrastructure.store.memory_reservation_store import MemoryReservationStore
from conftest import fixed_clock

MONDAY = date(2025, 3, 10)
TUESDAY = date(2025, 3, 11)
FOLLOW_UP = SelectedService(service_id="acupuncture", service_name="Acupuncture", session_type="Follow Up", price=100)


def _state(*slots, **overrides) -> WizardState:
    cart = SelectionAccumulator()
    for on_date, time in slots:
        cart.toggle(on_date, time)
    state = WizardState(
        selected_service=FOLLOW_UP,
        selections=cart.selections,
        form_data=IntakeForm(reason_for_visit="Back pain"),
        consent_agreed=True,
        policy_agreed=True,
    )
    return replace(state, **overrides)


def _coordinator(store, reference="BK1741622400000ABCD"):
    return BookingSubmissionCoordinator(store, fixed_clock(), reference_factory=lambda now: reference)


class BrokenDeleteStore(MemoryReservationStore):
    async def delete_group(self, book_number):
        raise ReservationStoreError("Internal server error", status_code=500)


@pytest.mark.asyncio
async def test_multi_slot_booking_shares_one_reference(store):
    state = _state((MONDAY, "09:00"), (TUESDAY, "14:00"))

    outcome = await _coordinator(store).submit("prac-1", "patient-1", state)

    assert outcome.success
    assert outcome.message == "2 bookings created successfully!"
    rows = await store.list_reservations(practitioner_id="prac-1")
    assert [(r.date, r.time) for r in rows] == [(MONDAY, "09:00"), (TUESDAY, "14:00")]
    assert {r.book_number for r in rows} == {"BK1741622400000ABCD"}
    assert {r.service_type for r in rows} == {"Acupuncture - Follow Up"}
    assert {r.reason for r in rows} == {"Back pain"}

    summary = build_confirmation_summary(replace(state, book_number=outcome.book_number))
    assert summary.count == 2
    assert summary.total_price == 200
    assert summary.appointments[0].display_date == "Mon, Mar 10, 2025"
    assert summary.appointments[1].display_time == "2:00 PM - 3:00 PM"


@pytest.mark.asyncio
async def test_single_booking_message(store):
    outcome = await _coordinator(store).submit("prac-1", "patient-1", _state((TUESDAY, "09:00")))

    assert outcome.message == "1 booking created successfully!"


@pytest.mark.asyncio
async def test_partial_failure_keeps_successful_creates(store):
    await store.create_reservation(
        Reservation(practitioner_id="prac-1", patient_id="patient-2", date=TUESDAY, time="14:00",
                    service_type="Acupuncture - Initial Visit", price=150, book_number="BKOTHER")
    )
    state = _state((MONDAY, "09:00"), (TUESDAY, "14:00"))

    outcome = await _coordinator(store).submit("prac-1", "patient-1", state)

    assert not outcome.success
    assert isinstance(outcome.error, PartialSubmissionFailure)
    assert len(outcome.created) == 1
    assert len(outcome.failed) == 1
    assert "2025-03-11" in outcome.message
    assert "2:00 PM - 3:00 PM" in outcome.message
    assert "Time slot is already booked" in outcome.message

    # no rollback: the Monday reservation is still there
    mine = await store.list_reservations(patient_id="patient-1")
    assert [(r.date, r.time, r.book_number) for r in mine] == [(MONDAY, "09:00", "BK1741622400000ABCD")]


@pytest.mark.asyncio
async def test_incomplete_state_never_reaches_the_store(store):
    outcome = await _coordinator(store).submit("prac-1", "patient-1", _state((TUESDAY, "09:00"), policy_agreed=False))

    assert not outcome.success
    assert await store.list_reservations() == []


@pytest.mark.asyncio
async def test_reschedule_replaces_group_under_same_reference(store):
    await _coordinator(store, "BKGROUP").submit("prac-1", "patient-1", _state((MONDAY, "09:00"), (TUESDAY, "14:00")))
    moved = _state((TUESDAY, "10:00"), book_number="BKGROUP", reschedule_mode=True)

    outcome = await _coordinator(store, "BKNEW").submit("prac-1", "patient-1", moved)

    assert outcome.success
    assert outcome.message == "Successfully rescheduled 1 bookings!"
    rows = await store.list_reservations(patient_id="patient-1")
    assert [(r.date, r.time, r.book_number) for r in rows] == [(TUESDAY, "10:00", "BKGROUP")]


@pytest.mark.asyncio
async def test_reschedule_conflict_keeps_the_old_group(store):
    await _coordinator(store, "BKGROUP").submit("prac-1", "patient-1", _state((MONDAY, "09:00")))
    await store.create_reservation(
        Reservation(practitioner_id="prac-1", patient_id="patient-2", date=TUESDAY, time="10:00",
                    service_type="Acupuncture - Follow Up", price=100, book_number="BKOTHER")
    )
    moved = _state((TUESDAY, "10:00"), book_number="BKGROUP", reschedule_mode=True)

    outcome = await _coordinator(store).submit("prac-1", "patient-1", moved)

    assert not outcome.success
    assert isinstance(outcome.error, RescheduleFailed)
    assert outcome.message.startswith("Failed to reschedule booking")
    rows = await store.list_reservations(patient_id="patient-1")
    assert [(r.date, r.time) for r in rows] == [(MONDAY, "09:00")]


@pytest.mark.asyncio
async def test_cancellation_removes_the_whole_group(store):
    state = _state((MONDAY, "09:00"), (TUESDAY, "09:00"), (TUESDAY, "14:00"))
    await _coordinator(store, "BKGROUP").submit("prac-1", "patient-1", state)

    outcome = await CancellationCoordinator(store).cancel("BKGROUP")

    assert outcome.success
    assert outcome.count == 3
    assert outcome.message == "Successfully cancelled 3 bookings"
    assert await store.list_reservations(practitioner_id="prac-1") == []


@pytest.mark.asyncio
async def test_cancellation_of_unknown_reference_fails(store):
    outcome = await CancellationCoordinator(store).cancel("BKNOPE")

    assert not outcome.success
    assert isinstance(outcome.error, CancellationFailed)


@pytest.mark.asyncio
async def test_cancellation_store_error_is_reported():
    outcome = await CancellationCoordinator(BrokenDeleteStore()).cancel("BKGROUP")

    assert not outcome.success
    assert outcome.message == "Failed to cancel booking: Internal server error"


@pytest.mark.asyncio
async def test_recovery_picks_the_latest_group(directory):
    earlier = datetime(2025, 3, 10, 8, tzinfo=timezone.utc)
    later = datetime(2025, 3, 10, 9, tzinfo=timezone.utc)
    stamps = iter([earlier, earlier, later])
    store = MemoryReservationStore(directory=directory, now=lambda: next(stamps))
    await _coordinator(store, "BKOLD").submit("prac-1", "patient-1", _state((MONDAY, "09:00"), (MONDAY, "10:00")))
    await _coordinator(store, "BKNEW").submit("prac-1", "patient-1", _state((TUESDAY, "15:00")))

    state = await ConfirmationRecovery(store).recover("prac-1", "patient-1")

    assert state.book_number == "BKNEW"
    assert [(s.date, s.time) for s in state.selections] == [(TUESDAY, "15:00")]
    assert state.selected_service.service_name == "Acupuncture"
    assert state.selected_service.session_type == "Follow Up"
    assert state.form_data.reason_for_visit == "Back pain"


@pytest.mark.asyncio
async def test_recovery_without_bookings(store):
    assert await ConfirmationRecovery(store).recover("prac-1", "patient-1") is None

