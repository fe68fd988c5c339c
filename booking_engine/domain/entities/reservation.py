from __future__ import annotations

from dataclasses import dataclass
from datetime import date


STATUS_CONFIRMED = "confirmed"
BLOCKED_SERVICE = "blocked"
BLOCKED_REASON = "Personal appointment"


@dataclass(frozen=True)
class Reservation:
    practitioner_id: str
    date: date
    time: str  # canonical "HH:MM"
    service_type: str  # "{service name} - {session type}" or "blocked"
    patient_id: str | None = None
    price: float | None = None
    reason: str | None = None
    status: str = STATUS_CONFIRMED
    book_number: str | None = None
    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    # Display-only, filled in by the store from the user directory
    patient_name: str | None = None
    practitioner_name: str | None = None

    @property
    def is_blocked(self) -> bool:
        return self.service_type == BLOCKED_SERVICE
