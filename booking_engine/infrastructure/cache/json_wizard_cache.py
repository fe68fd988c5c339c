from __future__ import annotations

import json
import logging
import re
import threading
from datetime import date
from pathlib import Path
from typing import Any

from booking_engine.application.ports.wizard_cache import WizardCachePort
from booking_engine.application.utils.time_format import (
    canonical_to_display,
    format_display_date,
    to_canonical,
)
from booking_engine.domain.entities.practitioner import SelectedService
from booking_engine.domain.entities.selection import Selection
from booking_engine.domain.entities.wizard_state import IntakeForm, WizardState

CACHE_VERSION = 1
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonWizardCache(WizardCachePort):
    """One JSON document per (owner, practitioner), written atomically.

    Unreadable or foreign documents load as "nothing cached" instead of failing.
    """

    def __init__(self, data_dir: str = "./data/wizard") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, key: str) -> threading.Lock:
        with self._lock_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def _get_file_path(self, owner_id: str, practitioner_id: str) -> Path:
        owner = _UNSAFE_CHARS.sub("_", owner_id)
        practitioner = _UNSAFE_CHARS.sub("_", practitioner_id)
        return self._data_dir / owner / f"booking_state_{practitioner}.json"

    def load(self, owner_id: str, practitioner_id: str) -> WizardState | None:
        file_path = self._get_file_path(owner_id, practitioner_id)
        with self._get_lock(str(file_path)):
            if not file_path.exists():
                return None
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                self._logger.warning(
                    "Discarding unreadable wizard cache",
                    extra={"practitioner_id": practitioner_id, "error": str(e)},
                )
                return None

        if not isinstance(data, dict) or data.get("version") != CACHE_VERSION:
            self._logger.warning(
                "Discarding wizard cache with unknown version",
                extra={"practitioner_id": practitioner_id},
            )
            return None
        try:
            return deserialize_state(data.get("state") or {})
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            self._logger.warning(
                "Discarding malformed wizard cache",
                extra={"practitioner_id": practitioner_id, "error": str(e)},
            )
            return None

    def save(self, owner_id: str, practitioner_id: str, state: WizardState) -> None:
        file_path = self._get_file_path(owner_id, practitioner_id)
        data = {
            "owner_id": owner_id,
            "practitioner_id": practitioner_id,
            "state": serialize_state(state),
            "version": CACHE_VERSION,
        }
        with self._get_lock(str(file_path)):
            file_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = file_path.with_suffix(".json.tmp")
            try:
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                temp_path.replace(file_path)
            except Exception:
                if temp_path.exists():
                    temp_path.unlink()
                raise

    def clear(self, owner_id: str, practitioner_id: str) -> None:
        file_path = self._get_file_path(owner_id, practitioner_id)
        with self._get_lock(str(file_path)):
            file_path.unlink(missing_ok=True)


def serialize_state(state: WizardState) -> dict[str, Any]:
    service = state.selected_service
    return {
        "selected_service": (
            {
                "service_id": service.service_id,
                "service_name": service.service_name,
                "session_type": service.session_type,
                "price": service.price,
            }
            if service
            else None
        ),
        "appointment_type": state.appointment_type,
        "selected_bookings": [{"date": s.date.isoformat(), "time": s.time} for s in state.selections],
        "form_data": {
            "patient_name": state.form_data.patient_name,
            "patient_email": state.form_data.patient_email,
            "patient_phone": state.form_data.patient_phone,
            "reason_for_visit": state.form_data.reason_for_visit,
        },
        "consent_agreed": state.consent_agreed,
        "policy_agreed": state.policy_agreed,
        "current_date": state.current_date.isoformat() if state.current_date else None,
        "book_number": state.book_number,
        "reschedule_mode": state.reschedule_mode,
        "last_updated": state.last_updated,
    }


def deserialize_state(data: dict[str, Any]) -> WizardState:
    service = _parse_service(data.get("selected_service"))

    selections: list[Selection] = []
    seen: set[tuple[date, str]] = set()
    for item in data.get("selected_bookings") or []:
        try:
            on_date = date.fromisoformat(item["date"])
            time = to_canonical(item["time"])
        except (KeyError, TypeError, ValueError):
            continue
        if (on_date, time) in seen:
            continue
        seen.add((on_date, time))
        # Display strings are always re-derived from the canonical values
        selections.append(
            Selection(
                date=on_date,
                time=time,
                display_date=format_display_date(on_date),
                display_time=canonical_to_display(time),
            )
        )

    form = data.get("form_data")
    if not isinstance(form, dict):
        form = {}
    return WizardState(
        selected_service=service,
        appointment_type=_parse_str(data.get("appointment_type")) or "",
        selections=tuple(selections),
        form_data=IntakeForm(
            patient_name=_parse_str(form.get("patient_name")) or "",
            patient_email=_parse_str(form.get("patient_email")) or "",
            patient_phone=_parse_str(form.get("patient_phone")) or "",
            reason_for_visit=_parse_str(form.get("reason_for_visit")) or "",
        ),
        consent_agreed=_parse_bool(data.get("consent_agreed")),
        policy_agreed=_parse_bool(data.get("policy_agreed")),
        current_date=_parse_date(data.get("current_date")),
        book_number=_parse_str(data.get("book_number")) or None,
        reschedule_mode=_parse_bool(data.get("reschedule_mode")),
        last_updated=_parse_timestamp(data.get("last_updated")),
    )


def _parse_service(data: Any) -> SelectedService | None:
    if not isinstance(data, dict):
        return None
    try:
        return SelectedService(
            service_id=str(data["service_id"]),
            service_name=str(data["service_name"]),
            session_type=str(data["session_type"]),
            price=float(data["price"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def _parse_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_bool(value: Any) -> bool:
    # only a real JSON boolean counts; "false" or 1 fall back to False
    return value if isinstance(value, bool) else False


def _parse_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _parse_timestamp(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
