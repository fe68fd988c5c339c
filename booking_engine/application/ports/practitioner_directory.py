from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.practitioner import PractitionerProfile


class PractitionerDirectoryPort(ABC):
    @abstractmethod
    async def get_practitioner(self, practitioner_id: str) -> PractitionerProfile | None:
        """Get practitioner profile by id. Returns None if not found."""
        raise NotImplementedError

    @abstractmethod
    async def get_display_name(self, user_id: str) -> str | None:
        """Get full name of any user (patient or practitioner)."""
        raise NotImplementedError
