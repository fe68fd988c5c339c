from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.wizard_state import WizardState


class WizardCachePort(ABC):
    @abstractmethod
    def load(self, owner_id: str, practitioner_id: str) -> WizardState | None:
        """Load cached wizard state. Returns None if nothing is cached."""
        raise NotImplementedError

    @abstractmethod
    def save(self, owner_id: str, practitioner_id: str, state: WizardState) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self, owner_id: str, practitioner_id: str) -> None:
        raise NotImplementedError
