from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PractitionerProfile:
    id: str
    full_name: str
    specialty: str | list[str] | None = None
    specialty_rate: dict[str, float] = field(default_factory=dict)
    avatar: str | None = None
    clinic: str | None = None
    address: str | None = None
    rating: float | None = None
    total_reviews: int | None = None


@dataclass(frozen=True)
class ServiceSession:
    type: str  # "Initial Visit" | "Follow Up"
    price: float


@dataclass(frozen=True)
class ServiceOption:
    id: str
    name: str
    sessions: tuple[ServiceSession, ...]


@dataclass(frozen=True)
class SelectedService:
    service_id: str
    service_name: str
    session_type: str
    price: float

    @property
    def descriptor(self) -> str:
        """Service descriptor stored on every reservation of the booking."""
        return f"{self.service_name} - {self.session_type}"
