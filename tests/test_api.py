from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from booking_engine.application.use_cases.booking_flow import BookingFlowUseCase
from booking_engine.infrastructure.cache.memory_wizard_cache import MemoryWizardCache
from booking_engine.infrastructure.directory.memory_directory import MemoryPractitionerDirectory
from booking_engine.infrastructure.store.memory_reservation_store import MemoryReservationStore
from booking_engine.main import app
from booking_engine.wiring.dependencies import get_booking_flow, get_reservation_store
from conftest import fixed_clock

PATIENT = {"X-User-Id": "patient-1", "X-User-Type": "patient"}


@pytest.fixture
def client():
    directory = MemoryPractitionerDirectory()
    store = MemoryReservationStore(directory=directory)
    flow = BookingFlowUseCase(
        store=store,
        directory=directory,
        cache=MemoryWizardCache(),
        clock=fixed_clock(hour=8),
        timezone=ZoneInfo("America/Los_Angeles"),
    )
    app.dependency_overrides[get_reservation_store] = lambda: store
    app.dependency_overrides[get_booking_flow] = lambda: flow
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_store_rejects_double_booking(client):
    payload = {
        "practitioner_id": "prac-1",
        "patient_id": "patient-1",
        "date": "2025-03-11",
        "time": "14:00",
        "service_type": "Acupuncture - Follow Up",
        "price": 100,
        "book_number": "BK1",
    }

    first = client.post("/api/bookings", json=payload)
    second = client.post("/api/bookings", json={**payload, "patient_id": "patient-2"})

    assert first.status_code == 200
    assert first.json()["booking"]["status"] == "confirmed"
    assert second.status_code == 409
    assert second.json() == {"error": "Time slot is already booked"}


def test_store_validates_required_fields(client):
    response = client.post("/api/bookings", json={"practitioner_id": "prac-1", "date": "2025-03-11"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"

    response = client.post(
        "/api/bookings",
        json={"practitioner_id": "prac-1", "date": "2025-03-11", "time": "09:00", "service_type": "Acupuncture"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields for appointment booking"


def test_store_blocked_slot_and_single_delete(client):
    response = client.post(
        "/api/bookings",
        json={"practitioner_id": "prac-1", "patient_id": "patient-1", "date": "2025-03-11",
              "time": "16:00", "service_type": "blocked", "price": 50},
    )
    booking = response.json()["booking"]
    assert response.json()["message"] == "Time slot blocked successfully"
    assert booking["patient_id"] is None
    assert booking["price"] is None
    assert booking["reason"] == "Personal appointment"

    response = client.delete("/api/bookings", params={"id": booking["id"]})
    assert response.json()["message"] == "Successfully deleted booking"
    assert client.delete("/api/bookings").status_code == 400


def test_wizard_requires_patient(client):
    anonymous = client.get("/api/book/prac-1")
    assert anonymous.status_code == 401
    assert anonymous.json()["redirect_to"] == "/auth/signin"

    practitioner = client.get("/api/book/prac-1", headers={"X-User-Id": "prac-2", "X-User-Type": "practitioner"})
    assert practitioner.status_code == 403
    assert practitioner.json()["redirect_to"] == "/find-practitioner"

    assert client.get("/api/book/nobody", headers=PATIENT).status_code == 404


def test_wizard_end_to_end(client):
    view = client.get("/api/book/prac-1", headers=PATIENT).json()
    assert view["step"] == 1
    assert view["practitioner"]["specialties"] == "Acupuncture • Chinese Herbal Medicine"

    blocked = client.post("/api/book/prac-1/next", params={"step": 1}, headers=PATIENT)
    assert blocked.status_code == 400
    assert blocked.json()["detail"] == "Please select a service before proceeding."

    client.post("/api/book/prac-1/service", json={"service_id": "acupuncture", "session_index": 1}, headers=PATIENT)
    day = client.get("/api/book/prac-1/availability", params={"date": "2025-03-11"}, headers=PATIENT).json()
    assert [s["status"] for s in day["afternoon"]] == ["available"] * 4

    client.post("/api/book/prac-1/slots/toggle", json={"date": "2025-03-10", "time": "09:00"}, headers=PATIENT)
    state = client.post(
        "/api/book/prac-1/slots/toggle", json={"date": "2025-03-11", "time": "2:00 PM - 3:00 PM"}, headers=PATIENT
    ).json()
    assert [s["time"] for s in state["selections"]] == ["09:00", "14:00"]

    step = client.post("/api/book/prac-1/next", params={"step": 4}, headers=PATIENT)
    assert step.status_code == 400
    assert step.json()["detail"] == "Please agree to the consent forms."

    client.put("/api/book/prac-1/intake", json={"consent_agreed": True, "policy_agreed": True}, headers=PATIENT)
    result = client.post("/api/book/prac-1/next", params={"step": 4}, headers=PATIENT).json()
    assert result["step"] == 5
    assert result["submission"]["message"] == "2 bookings created successfully!"
    assert result["summary"]["total_price"] == 200

    ics = client.get("/api/book/prac-1/confirmation.ics", headers=PATIENT)
    assert ics.headers["content-type"].startswith("text/calendar")
    assert ics.text.count("BEGIN:VEVENT") == 2

    assert client.post("/api/book/prac-1/back", params={"step": 5}, headers=PATIENT).status_code == 400

    cancel = client.post("/api/book/prac-1/cancel", params={"step": 5}, json={"confirm": True}, headers=PATIENT).json()
    assert cancel["cancelled"]
    assert cancel["count"] == 2
    assert cancel["message"] == "Successfully cancelled 2 bookings"
    assert cancel["redirect_to"] == "/find-practitioner"
    assert cancel["state"]["book_number"] is None
    assert cancel["state"]["selections"] == []
    assert not cancel["state"]["consent_agreed"]
    assert client.get("/api/bookings", params={"patient_id": "patient-1"}).json() == {"bookings": []}
