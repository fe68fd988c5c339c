from __future__ import annotations

from dataclasses import replace
from datetime import date

from booking_engine.domain.entities.wizard_state import IntakeForm, WizardState


def reset_wizard_state() -> WizardState:
    """Fresh wizard state, as on a brand new booking."""
    return WizardState()


def reset_selections(state: WizardState) -> WizardState:
    """Drop every selected slot, keep everything else."""
    return replace(state, selections=())


def enter_reschedule_state(state: WizardState, today: date) -> WizardState:
    """Keep service, intake and booking reference; clear slots and restart the calendar at today."""
    return replace(state, selections=(), current_date=today, reschedule_mode=True)


def exit_reschedule_state(state: WizardState) -> WizardState:
    return replace(state, reschedule_mode=False)


def with_form_fields(state: WizardState, **fields: str) -> WizardState:
    form = state.form_data
    known = {k: v for k, v in fields.items() if k in IntakeForm.__dataclass_fields__ and v is not None}
    return replace(state, form_data=replace(form, **known))
