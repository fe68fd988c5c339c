from __future__ import annotations

from typing import Any

from booking_engine.application.utils.time_format import format_api_date, parse_api_date
from booking_engine.domain.entities.reservation import STATUS_CONFIRMED, Reservation


def reservation_to_wire(reservation: Reservation) -> dict[str, Any]:
    """Serialize a reservation as the bookings API row (names nested like the joined users)."""
    return {
        "id": reservation.id,
        "practitioner_id": reservation.practitioner_id,
        "patient_id": reservation.patient_id,
        "date": format_api_date(reservation.date),
        "time": reservation.time,
        "service_type": reservation.service_type,
        "price": reservation.price,
        "reason": reservation.reason,
        "status": reservation.status,
        "book_number": reservation.book_number,
        "created_at": reservation.created_at,
        "updated_at": reservation.updated_at,
        "patient": _user(reservation.patient_id, reservation.patient_name),
        "practitioner": _user(reservation.practitioner_id, reservation.practitioner_name),
    }


def reservation_to_insert(reservation: Reservation) -> dict[str, Any]:
    """Fields accepted by POST and by the reschedule_data rows of PUT."""
    return {
        "practitioner_id": reservation.practitioner_id,
        "patient_id": reservation.patient_id,
        "date": format_api_date(reservation.date),
        "time": reservation.time,
        "service_type": reservation.service_type,
        "price": reservation.price,
        "reason": reservation.reason,
        "status": reservation.status,
        "book_number": reservation.book_number,
    }


def reservation_from_wire(data: dict[str, Any]) -> Reservation:
    patient = data.get("patient") or {}
    practitioner = data.get("practitioner") or {}
    return Reservation(
        id=_optional_str(data.get("id")),
        practitioner_id=str(data["practitioner_id"]),
        patient_id=_optional_str(data.get("patient_id")),
        date=parse_api_date(str(data["date"])),
        time=_normalize_time(str(data["time"])),
        service_type=data.get("service_type") or "",
        price=data.get("price"),
        reason=data.get("reason"),
        status=data.get("status") or STATUS_CONFIRMED,
        book_number=data.get("book_number"),
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        patient_name=patient.get("full_name") or data.get("patient_name"),
        practitioner_name=practitioner.get("full_name") or data.get("practitioner_name"),
    )


def _user(user_id: str | None, full_name: str | None) -> dict[str, Any] | None:
    if not user_id or not full_name:
        return None
    return {"id": user_id, "full_name": full_name}


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _normalize_time(value: str) -> str:
    # Database time columns come back as "HH:MM:SS"
    if len(value) == 8 and value.count(":") == 2:
        return value[:5]
    return value
