from __future__ import annotations

from booking_engine.application.ports.wizard_cache import WizardCachePort
from booking_engine.domain.entities.wizard_state import WizardState


class MemoryWizardCache(WizardCachePort):
    def __init__(self) -> None:
        self._states: dict[tuple[str, str], WizardState] = {}

    def load(self, owner_id: str, practitioner_id: str) -> WizardState | None:
        return self._states.get((owner_id, practitioner_id))

    def save(self, owner_id: str, practitioner_id: str, state: WizardState) -> None:
        self._states[(owner_id, practitioner_id)] = state

    def clear(self, owner_id: str, practitioner_id: str) -> None:
        self._states.pop((owner_id, practitioner_id), None)
