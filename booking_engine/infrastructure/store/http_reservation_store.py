from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx

from booking_engine.application.exceptions import ReservationStoreError
from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.application.utils.time_format import format_api_date
from booking_engine.domain.entities.reservation import Reservation
from booking_engine.infrastructure.store.reservation_codec import (
    reservation_from_wire,
    reservation_to_insert,
)

BOOKINGS_PATH = "/api/bookings"


class HttpReservationStore(ReservationStorePort):
    """Reservation store reached over its HTTP bookings API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("RESERVATION_STORE_URL is required for the HTTP reservation store")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def list_reservations(
        self,
        practitioner_id: str | None = None,
        patient_id: str | None = None,
        on_date: date | None = None,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Reservation]:
        params: dict[str, str] = {}
        if practitioner_id:
            params["practitioner_id"] = practitioner_id
        if patient_id:
            params["patient_id"] = patient_id
        if on_date:
            params["date"] = format_api_date(on_date)
        if start_date:
            params["start_date"] = format_api_date(start_date)
        if end_date:
            params["end_date"] = format_api_date(end_date)
        if status:
            params["status"] = status

        data = await self._request("GET", params=params)
        return [reservation_from_wire(row) for row in data.get("bookings") or []]

    async def create_reservation(self, reservation: Reservation) -> Reservation:
        data = await self._request("POST", json=reservation_to_insert(reservation))
        return reservation_from_wire(data["booking"])

    async def update_reservation(
        self,
        reservation_id: str,
        status: str | None = None,
        reason: str | None = None,
    ) -> Reservation:
        payload: dict[str, Any] = {"id": reservation_id}
        if status:
            payload["status"] = status
        if reason is not None:
            payload["reason"] = reason
        data = await self._request("PUT", json=payload)
        return reservation_from_wire(data["booking"])

    async def reschedule_group(self, book_number: str, reservations: list[Reservation]) -> list[Reservation]:
        payload = {
            "book_number": book_number,
            "reschedule_data": [reservation_to_insert(r) for r in reservations],
        }
        data = await self._request("PUT", json=payload)
        return [reservation_from_wire(row) for row in data.get("bookings") or []]

    async def delete_group(self, book_number: str) -> list[Reservation]:
        data = await self._request("DELETE", params={"book_number": book_number})
        return [reservation_from_wire(row) for row in data.get("cancelled_bookings") or []]

    async def delete_reservation(self, reservation_id: str) -> list[Reservation]:
        data = await self._request("DELETE", params={"id": reservation_id})
        return [reservation_from_wire(row) for row in data.get("cancelled_bookings") or []]

    async def _request(self, method: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self._base_url}{BOOKINGS_PATH}"
        try:
            if self._client is not None:
                response = await self._client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            self._logger.error("Reservation store unreachable", extra={"error": str(e)})
            raise ReservationStoreError(f"Reservation store unreachable: {e}") from e

        if response.status_code >= 400:
            detail = _error_detail(response)
            self._logger.error(
                "Reservation store error",
                extra={"error": f"{method} {response.status_code} {detail}"},
            )
            raise ReservationStoreError(detail, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ReservationStoreError("Invalid response from reservation store") from e


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or f"HTTP {response.status_code}")
    return f"HTTP {response.status_code}"
