from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from booking_engine.api.v1.schemas import CreateReservationSchema, RescheduleRowSchema, UpdateReservationSchema
from booking_engine.application.exceptions import ReservationStoreError
from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.application.utils.time_format import parse_api_date, to_canonical
from booking_engine.domain.entities.reservation import BLOCKED_SERVICE, STATUS_CONFIRMED, Reservation
from booking_engine.infrastructure.store.reservation_codec import reservation_to_wire
from booking_engine.wiring.dependencies import get_reservation_store

router = APIRouter(prefix="/api/bookings")
logger = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _store_error(e: ReservationStoreError, fallback: str) -> JSONResponse:
    if e.status_code and e.status_code < 500:
        return _error(e.detail, e.status_code)
    logger.error(fallback, extra={"error": e.detail})
    return JSONResponse(status_code=500, content={"error": fallback, "details": e.detail})


def _parse_date(value: str | None) -> date | None:
    return parse_api_date(value) if value else None


@router.get("")
async def list_bookings(
    practitioner_id: str | None = Query(None),
    patient_id: str | None = Query(None),
    date: str | None = Query(None),
    start_date: str | None = Query(None),
    end_date: str | None = Query(None),
    status: str | None = Query(None),
    store: ReservationStorePort = Depends(get_reservation_store),
):
    try:
        on_date = _parse_date(date)
        start = _parse_date(start_date)
        end = _parse_date(end_date)
    except ValueError:
        return _error("Invalid date format", 400)

    try:
        rows = await store.list_reservations(
            practitioner_id=practitioner_id,
            patient_id=patient_id,
            on_date=on_date,
            status=status,
            start_date=start,
            end_date=end,
        )
    except ReservationStoreError as e:
        return _store_error(e, "Failed to fetch bookings")
    return {"bookings": [reservation_to_wire(r) for r in rows]}


@router.post("")
async def create_booking(
    req: CreateReservationSchema,
    store: ReservationStorePort = Depends(get_reservation_store),
):
    if not req.practitioner_id or not req.date or not req.time or not req.service_type:
        return _error("Missing required fields", 400)

    is_blocked = req.service_type == BLOCKED_SERVICE
    if not is_blocked and (not req.patient_id or not req.price):
        return _error("Missing required fields for appointment booking", 400)

    try:
        on_date = parse_api_date(req.date)
    except ValueError:
        return _error("Invalid date format", 400)
    try:
        time = to_canonical(req.time)
    except ValueError:
        return _error("Invalid time format", 400)

    draft = Reservation(
        practitioner_id=req.practitioner_id,
        patient_id=req.patient_id,
        date=on_date,
        time=time,
        service_type=req.service_type,
        price=req.price,
        reason=req.reason,
        book_number=req.book_number,
    )
    try:
        row = await store.create_reservation(draft)
    except ReservationStoreError as e:
        return _store_error(e, "Failed to create booking")

    return {
        "message": "Time slot blocked successfully" if is_blocked else "Booking created successfully",
        "booking": reservation_to_wire(row),
    }


@router.put("")
async def update_booking(
    req: UpdateReservationSchema,
    store: ReservationStorePort = Depends(get_reservation_store),
):
    if req.book_number and req.reschedule_data is not None:
        try:
            drafts = [_draft_from_row(row, req.book_number) for row in req.reschedule_data]
        except ValueError:
            return _error("Invalid date or time format", 400)
        try:
            rows = await store.reschedule_group(req.book_number, drafts)
        except ReservationStoreError as e:
            return _store_error(e, "Failed to create rescheduled bookings")
        return {
            "message": f"Successfully rescheduled {len(rows)} bookings",
            "bookings": [reservation_to_wire(r) for r in rows],
        }

    if not req.id:
        return _error("Booking ID is required", 400)

    try:
        row = await store.update_reservation(req.id, status=req.status, reason=req.reason)
    except ReservationStoreError as e:
        return _store_error(e, "Failed to update booking")
    return {"message": "Booking updated successfully", "booking": reservation_to_wire(row)}


@router.delete("")
async def delete_bookings(
    book_number: str | None = Query(None),
    booking_id: str | None = Query(None, alias="id"),
    store: ReservationStorePort = Depends(get_reservation_store),
):
    if not book_number and not booking_id:
        return _error("Either book_number or id is required", 400)

    try:
        if booking_id:
            rows = await store.delete_reservation(booking_id)
        else:
            rows = await store.delete_group(book_number)
    except ReservationStoreError as e:
        return _store_error(e, "Failed to cancel bookings")

    return {
        "message": "Successfully deleted booking" if booking_id else f"Successfully cancelled {len(rows)} bookings",
        "cancelled_bookings": [reservation_to_wire(r) for r in rows],
    }


def _draft_from_row(row: RescheduleRowSchema, book_number: str) -> Reservation:
    return Reservation(
        practitioner_id=row.practitioner_id,
        patient_id=row.patient_id,
        date=parse_api_date(row.date),
        time=to_canonical(row.time),
        service_type=row.service_type,
        price=row.price,
        reason=row.reason,
        status=row.status or STATUS_CONFIRMED,
        book_number=book_number,
    )
