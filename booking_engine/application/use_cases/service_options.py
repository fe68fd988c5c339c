from __future__ import annotations

import json
import re

from booking_engine.application.exceptions import ValidationFailed
from booking_engine.domain.entities.practitioner import (
    PractitionerProfile,
    SelectedService,
    ServiceOption,
    ServiceSession,
)

INITIAL_VISIT = "Initial Visit"
FOLLOW_UP = "Follow Up"
INITIAL_VISIT_MULTIPLIER = 1.5
GENERAL_CONSULTATION = "General Consultation"
GENERAL_PRACTICE = "General Practice"


def slugify_service(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def _sessions_for(rate: float) -> tuple[ServiceSession, ...]:
    return (
        ServiceSession(type=INITIAL_VISIT, price=round(rate * INITIAL_VISIT_MULTIPLIER)),
        ServiceSession(type=FOLLOW_UP, price=rate),
    )


def build_service_options(profile: PractitionerProfile | None, default_rate: int = 100) -> list[ServiceOption]:
    """One service per specialty rate, each with an Initial Visit and a Follow Up tier."""
    rates = profile.specialty_rate if profile else {}
    if not rates:
        return [
            ServiceOption(
                id=slugify_service(GENERAL_CONSULTATION),
                name=GENERAL_CONSULTATION,
                sessions=_sessions_for(default_rate),
            )
        ]

    return [
        ServiceOption(id=slugify_service(specialty), name=specialty, sessions=_sessions_for(float(rate)))
        for specialty, rate in rates.items()
    ]


def select_service(options: list[ServiceOption], service_id: str, session_index: int) -> SelectedService:
    for option in options:
        if option.id != service_id:
            continue
        if not 0 <= session_index < len(option.sessions):
            raise ValidationFailed("Please select a valid session type.")
        session = option.sessions[session_index]
        return SelectedService(
            service_id=option.id,
            service_name=option.name,
            session_type=session.type,
            price=session.price,
        )
    raise ValidationFailed("Please select a valid service.")


def parse_service_descriptor(descriptor: str, price: float | None) -> SelectedService:
    """Rebuild a selected service from a stored "{name} - {session}" descriptor."""
    name, _, session_type = descriptor.partition(" - ")
    return SelectedService(
        service_id=slugify_service(name),
        service_name=name,
        session_type=session_type or INITIAL_VISIT,
        price=price or 0,
    )


def format_specialties(specialty: str | list[str] | None) -> str:
    """Render a specialty list, JSON-encoded list or plain string as "A • B"."""
    if not specialty:
        return GENERAL_PRACTICE

    if isinstance(specialty, list):
        valid = [item.strip() for item in specialty if isinstance(item, str) and item.strip()]
        return " • ".join(valid) if valid else GENERAL_PRACTICE

    text = specialty.strip()
    if text.startswith("[") or text.startswith('"'):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return text or GENERAL_PRACTICE
        if isinstance(parsed, list):
            return format_specialties(parsed)
        return str(parsed).strip() or GENERAL_PRACTICE
    return text or GENERAL_PRACTICE
