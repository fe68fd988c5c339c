import re
from datetime import datetime, timezone

import pytest

from booking_engine.application.exceptions import ValidationFailed
from booking_engine.application.use_cases.service_options import (
    build_service_options,
    format_specialties,
    parse_service_descriptor,
    select_service,
)
from booking_engine.application.utils.booking_reference import new_booking_reference
from booking_engine.domain.entities.practitioner import PractitionerProfile
import re


def test_services_come_from_specialty_rates():
    profile = PractitionerProfile(id="p", full_name="Dr. P", specialty_rate={"Acupuncture": 100, "Deep Tissue Massage": 75})

    options = build_service_options(profile)

    assert [o.id for o in options] == ["acupuncture", "deep-tissue-massage"]
    acupuncture = options[0]
    assert [(s.type, s.price) for s in acupuncture.sessions] == [("Initial Visit", 150), ("Follow Up", 100)]


def test_fallback_general_consultation():
    options = build_service_options(PractitionerProfile(id="p", full_name="Dr. P"), default_rate=100)

    assert len(options) == 1
    assert options[0].name == "General Consultation"
    assert [s.price for s in options[0].sessions] == [150, 100]


def test_select_service_builds_descriptor():
    options = build_service_options(PractitionerProfile(id="p", full_name="Dr. P", specialty_rate={"Acupuncture": 100}))

    selected = select_service(options, "acupuncture", 1)

    assert selected.descriptor == "Acupuncture - Follow Up"
    assert selected.price == 100


def test_select_unknown_service_is_rejected():
    options = build_service_options(None)
    with pytest.raises(ValidationFailed):
        select_service(options, "nope", 0)
    with pytest.raises(ValidationFailed):
        select_service(options, "general-consultation", 5)


def test_parse_descriptor_defaults_to_initial_visit():
    service = parse_service_descriptor("Acupuncture", 150)
    assert service.session_type == "Initial Visit"
    assert service.service_id == "acupuncture"

    service = parse_service_descriptor("Deep Tissue Massage - Follow Up", 75)
    assert service.service_name == "Deep Tissue Massage"
    assert service.session_type == "Follow Up"


def test_format_specialties():
    assert format_specialties(["Acupuncture", " ", "Herbs"]) == "Acupuncture • Herbs"
    assert format_specialties('["Acupuncture", "Herbs"]') == "Acupuncture • Herbs"
    assert format_specialties("Physical Therapy") == "Physical Therapy"
    assert format_specialties(None) == "General Practice"
    assert format_specialties([]) == "General Practice"


def test_booking_reference_format():
    now = datetime(2025, 3, 10, 16, 0, tzinfo=timezone.utc)

    reference = new_booking_reference(now)

    assert reference.startswith(f"BK{int(now.timestamp() * 1000)}")
    assert re.fullmatch(r"BK\d+[0-9A-Z]{4}", reference)
