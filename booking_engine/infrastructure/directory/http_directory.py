from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from booking_engine.application.exceptions import DirectoryError
from booking_engine.application.ports.practitioner_directory import PractitionerDirectoryPort
from booking_engine.domain.entities.practitioner import PractitionerProfile


class HttpPractitionerDirectory(PractitionerDirectoryPort):
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("DIRECTORY_URL is required for the HTTP practitioner directory")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def get_practitioner(self, practitioner_id: str) -> PractitionerProfile | None:
        data = await self._get(f"/api/practitioners/{practitioner_id}")
        if data is None:
            return None
        return _profile_from_wire(data.get("practitioner") or {})

    async def get_display_name(self, user_id: str) -> str | None:
        data = await self._get(f"/api/users/{user_id}")
        if data is None:
            return None
        return (data.get("user") or {}).get("full_name")

    async def _get(self, path: str) -> dict[str, Any] | None:
        url = f"{self._base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            self._logger.error("Directory unreachable", extra={"error": str(e)})
            raise DirectoryError(f"Directory unreachable: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            self._logger.error("Directory error", extra={"error": f"GET {path} {response.status_code}"})
            raise DirectoryError(f"Directory answered HTTP {response.status_code}")
        return response.json()


def _profile_from_wire(data: dict[str, Any]) -> PractitionerProfile | None:
    if not data.get("id"):
        return None
    rates = data.get("specialty_rate") or {}
    if isinstance(rates, str):
        try:
            rates = json.loads(rates)
        except json.JSONDecodeError:
            rates = {}
    return PractitionerProfile(
        id=str(data["id"]),
        full_name=data.get("full_name") or "",
        specialty=data.get("specialty"),
        specialty_rate={str(k): v for k, v in rates.items()} if isinstance(rates, dict) else {},
        avatar=data.get("avatar"),
        clinic=data.get("clinic"),
        address=data.get("address"),
        rating=data.get("rating"),
        total_reviews=data.get("total_reviews"),
    )
