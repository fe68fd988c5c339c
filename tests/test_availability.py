from datetime import date

import pytest

from booking_engine.application.exceptions import ReservationStoreError
from booking_engine.application.use_cases.availability import AvailabilityResolver
from booking_engine.domain.entities.reservation import Reservation
from booking_engine.domain.entities.slot_status import Available, Conflicted, Occupied
from booking_engine.infrastructure.store.memory_reservation_store import MemoryReservationStore
from conftest import fixed_clock

MONDAY = date(2025, 3, 10)
TUESDAY = date(2025, 3, 11)


class FailingStore(MemoryReservationStore):
    async def list_reservations(self, **filters):
        raise ReservationStoreError("Failed to fetch bookings", status_code=500)


def _booking(practitioner_id, patient_id, on_date, time, service="Acupuncture - Follow Up"):
    return Reservation(
        practitioner_id=practitioner_id,
        patient_id=patient_id,
        date=on_date,
        time=time,
        service_type=service,
        price=100,
        book_number="BK1",
    )


@pytest.mark.asyncio
async def test_empty_day_is_fully_available(store):
    resolver = AvailabilityResolver(store, fixed_clock(hour=8))

    day = await resolver.resolve("prac-1", TUESDAY, patient_id="patient-1")

    assert len(day.morning) == 4
    assert len(day.afternoon) == 4
    assert day.available_times() == ["08:00", "09:00", "10:00", "11:00", "14:00", "15:00", "16:00", "17:00"]


@pytest.mark.asyncio
async def test_conflict_takes_precedence_over_occupied(store):
    await store.create_reservation(_booking("prac-1", "patient-2", TUESDAY, "10:00"))
    await store.create_reservation(_booking("prac-2", "patient-1", TUESDAY, "10:00", service="Physical Therapy - Initial Visit"))
    await store.create_reservation(_booking("prac-1", "patient-2", TUESDAY, "15:00"))
    resolver = AvailabilityResolver(store, fixed_clock(hour=8))

    day = await resolver.resolve("prac-1", TUESDAY, patient_id="patient-1")

    conflict = day.status_for("10:00")
    assert isinstance(conflict, Conflicted)
    assert conflict.other_practitioner == "Dr. Sam Rivera"
    assert conflict.service == "Physical Therapy - Initial Visit"

    occupied = day.status_for("15:00")
    assert isinstance(occupied, Occupied)
    assert occupied.patient_name == "Casey Park"
    assert not occupied.blocked

    assert isinstance(day.status_for("09:00"), Available)
    assert "10:00" not in day.available_times()


@pytest.mark.asyncio
async def test_own_booking_with_same_practitioner_is_occupied_not_conflicted(store):
    await store.create_reservation(_booking("prac-1", "patient-1", TUESDAY, "09:00"))
    resolver = AvailabilityResolver(store, fixed_clock(hour=8))

    day = await resolver.resolve("prac-1", TUESDAY, patient_id="patient-1")

    assert isinstance(day.status_for("09:00"), Occupied)


@pytest.mark.asyncio
async def test_blocked_slot_hides_patient_details(store):
    await store.create_reservation(
        Reservation(practitioner_id="prac-1", date=TUESDAY, time="16:00", service_type="blocked")
    )
    resolver = AvailabilityResolver(store, fixed_clock(hour=8))

    day = await resolver.resolve("prac-1", TUESDAY)

    status = day.status_for("16:00")
    assert isinstance(status, Occupied)
    assert status.blocked
    assert status.patient_name is None
    assert status.service is None


@pytest.mark.asyncio
async def test_anonymous_browsing_skips_conflicts(store):
    await store.create_reservation(_booking("prac-2", "patient-1", TUESDAY, "10:00"))
    resolver = AvailabilityResolver(store, fixed_clock(hour=8))

    day = await resolver.resolve("prac-1", TUESDAY, patient_id=None)

    assert isinstance(day.status_for("10:00"), Available)


@pytest.mark.asyncio
async def test_today_after_noon_hides_the_morning(store):
    resolver = AvailabilityResolver(store, fixed_clock(hour=13))

    day = await resolver.resolve("prac-1", MONDAY, patient_id="patient-1")

    assert day.morning_cutoff_applied
    assert day.morning == ()
    assert [v.slot.time for v in day.afternoon] == ["14:00", "15:00", "16:00", "17:00"]


@pytest.mark.asyncio
async def test_today_before_noon_keeps_the_morning(store):
    resolver = AvailabilityResolver(store, fixed_clock(hour=11, minute=59))

    day = await resolver.resolve("prac-1", MONDAY)

    assert not day.morning_cutoff_applied
    assert len(day.morning) == 4


@pytest.mark.asyncio
async def test_cutoff_applies_only_to_today(store):
    resolver = AvailabilityResolver(store, fixed_clock(hour=13))

    day = await resolver.resolve("prac-1", TUESDAY)

    assert len(day.morning) == 4


@pytest.mark.asyncio
async def test_past_date_offers_nothing(store):
    resolver = AvailabilityResolver(store, fixed_clock(hour=8))

    day = await resolver.resolve("prac-1", date(2025, 3, 9))

    assert day.past_date
    assert day.slots == ()


@pytest.mark.asyncio
async def test_fetch_failure_fails_closed():
    resolver = AvailabilityResolver(FailingStore(), fixed_clock(hour=8))

    day = await resolver.resolve("prac-1", TUESDAY, patient_id="patient-1")

    assert day.loading_failed
    assert day.available_times() == []
    assert day.errors
