from __future__ import annotations

from dataclasses import dataclass


USER_TYPE_PATIENT = "patient"
USER_TYPE_PRACTITIONER = "practitioner"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    user_type: str
    full_name: str | None = None

    @property
    def is_patient(self) -> bool:
        return self.user_type == USER_TYPE_PATIENT
