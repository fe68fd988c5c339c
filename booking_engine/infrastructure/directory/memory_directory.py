from __future__ import annotations

from booking_engine.application.ports.practitioner_directory import PractitionerDirectoryPort
from booking_engine.domain.entities.practitioner import PractitionerProfile


def _seed_practitioners() -> dict[str, PractitionerProfile]:
    return {
        "prac-1": PractitionerProfile(
            id="prac-1",
            full_name="Dr. Jordan Lee",
            specialty=["Acupuncture", "Chinese Herbal Medicine"],
            specialty_rate={"Acupuncture": 100, "Chinese Herbal Medicine": 80},
            clinic="Harbor Wellness Clinic",
            address="120 Market St, San Francisco, CA",
            rating=4.8,
            total_reviews=52,
        ),
        "prac-2": PractitionerProfile(
            id="prac-2",
            full_name="Dr. Sam Rivera",
            specialty="Physical Therapy",
        ),
    }


def _seed_users() -> dict[str, str]:
    return {
        "patient-1": "Alex Morgan",
        "patient-2": "Casey Park",
    }


class MemoryPractitionerDirectory(PractitionerDirectoryPort):
    def __init__(
        self,
        practitioners: dict[str, PractitionerProfile] | None = None,
        users: dict[str, str] | None = None,
    ) -> None:
        self._practitioners = _seed_practitioners() if practitioners is None else dict(practitioners)
        self._users = _seed_users() if users is None else dict(users)

    async def get_practitioner(self, practitioner_id: str) -> PractitionerProfile | None:
        return self._practitioners.get(practitioner_id)

    async def get_display_name(self, user_id: str) -> str | None:
        if user_id in self._practitioners:
            return self._practitioners[user_id].full_name
        return self._users.get(user_id)

