from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from booking_engine.application.exceptions import ValidationFailed
from booking_engine.application.ports.wizard_cache import WizardCachePort
from booking_engine.application.use_cases.selection import SelectionAccumulator
from booking_engine.application.utils.clock import Clock
from booking_engine.application.utils.state_helpers import (
    enter_reschedule_state,
    exit_reschedule_state,
    reset_selections,
    reset_wizard_state,
    with_form_fields,
)
from booking_engine.domain.entities.practitioner import SelectedService
from booking_engine.domain.entities.time_slot import TimeSlot
from booking_engine.domain.entities.wizard_state import WizardState, WizardStep

SELECT_SERVICE_BEFORE_PROCEEDING = "Please select a service before proceeding."
SELECT_SERVICE_FIRST = "Please select a service first."
SELECT_SLOT_BEFORE_PROCEEDING = "Please select at least one date and time slot before proceeding."
SELECT_SERVICE_AND_SLOT_FIRST = "Please select a service and at least one appointment slot first."
AGREE_TO_CONSENTS = "Please agree to the consent forms."
COMPLETE_PREVIOUS_STEPS = "Please complete all previous steps first."
COMPLETE_REQUIRED_FIELDS = "Please complete all required fields before booking."
CONFIRMATION_LOCKED = "Booking is confirmed. You cannot navigate to previous steps."
PAST_DATE = "Please choose today or a future date."


class WizardStateMachine:
    """Five-step booking wizard with forward guards and a durable per-practitioner cache.

    The current step is not part of the state: callers pass it in from the
    navigation state and get the next step back. Every mutation is written to
    the cache so a reload resumes where the patient left off.
    """

    def __init__(
        self,
        cache: WizardCachePort,
        owner_id: str,
        practitioner_id: str,
        clock: Clock,
    ) -> None:
        self._cache = cache
        self._owner_id = owner_id
        self._practitioner_id = practitioner_id
        self._clock = clock
        self._state = WizardState()
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def today(self) -> date:
        return self._clock().date()

    @property
    def viewed_date(self) -> date:
        return self._state.current_date or self.today

    def load(self) -> WizardState:
        """Resume from the cache, if anything is cached for this practitioner."""
        cached = self._cache.load(self._owner_id, self._practitioner_id)
        if cached is not None:
            self._state = cached
        return self._state

    # ------------------------------------------------------------------
    # Mutations (each one persisted)
    # ------------------------------------------------------------------

    def select_service(self, service: SelectedService) -> WizardState:
        return self._commit(replace(self._state, selected_service=service))

    def set_appointment_type(self, appointment_type: str) -> WizardState:
        return self._commit(replace(self._state, appointment_type=appointment_type))

    def toggle_selection(self, on_date: date, slot: TimeSlot | str) -> bool:
        cart = SelectionAccumulator(self._state.selections)
        selected = cart.toggle(on_date, slot)
        self._commit(replace(self._state, selections=cart.selections))
        return selected

    def is_selected(self, on_date: date, slot: TimeSlot | str) -> bool:
        return SelectionAccumulator(self._state.selections).is_selected(on_date, slot)

    def date_has_selections(self, on_date: date) -> bool:
        return SelectionAccumulator(self._state.selections).date_has_selections(on_date)

    def clear_selections(self) -> WizardState:
        return self._commit(reset_selections(self._state))

    def update_form(self, **fields: str) -> WizardState:
        return self._commit(with_form_fields(self._state, **fields))

    def set_consents(self, consent_agreed: bool | None = None, policy_agreed: bool | None = None) -> WizardState:
        state = self._state
        if consent_agreed is not None:
            state = replace(state, consent_agreed=consent_agreed)
        if policy_agreed is not None:
            state = replace(state, policy_agreed=policy_agreed)
        return self._commit(state)

    def view_date(self, on_date: date) -> WizardState:
        if on_date < self.today:
            raise ValidationFailed(PAST_DATE)
        return self._commit(replace(self._state, current_date=on_date))

    def navigate_month(self, direction: int) -> date:
        """Move the viewed date by whole months, clamping the day to the target month."""
        current = self.viewed_date
        month_index = current.year * 12 + (current.month - 1) + direction
        year, month = divmod(month_index, 12)
        month += 1
        day = min(current.day, _days_in_month(year, month))
        target = date(year, month, day)
        if target < self.today:
            target = self.today
        self._commit(replace(self._state, current_date=target))
        return target

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def can_navigate_to(self, target: int) -> bool:
        state = self._state
        has_service = state.selected_service is not None
        has_slots = len(state.selections) > 0
        if target == WizardStep.SERVICE:
            return True
        if target in (WizardStep.APPOINTMENT_TYPE, WizardStep.DATE_TIME):
            return has_service
        if target == WizardStep.INTAKE:
            return has_service and has_slots
        if target == WizardStep.CONFIRMATION:
            return state.ready_for_submission
        return False

    def go_to(self, current: int, target: int) -> WizardStep:
        """Step-bar navigation. Backward is always allowed except out of the confirmation."""
        current_step = _as_step(current)
        target_step = _as_step(target)

        if current_step == WizardStep.CONFIRMATION:
            raise self._reject(current_step, CONFIRMATION_LOCKED)
        if target_step <= current_step:
            return target_step

        if target_step == WizardStep.CONFIRMATION:
            # Only reachable through submission
            raise self._reject(current_step, COMPLETE_PREVIOUS_STEPS)
        if not self.can_navigate_to(target_step):
            if target_step == WizardStep.INTAKE:
                raise self._reject(current_step, SELECT_SERVICE_AND_SLOT_FIRST)
            raise self._reject(current_step, SELECT_SERVICE_FIRST)
        return target_step

    def next_step(self, current: int) -> WizardStep:
        """Forward guard for steps 1-3. Step 4 goes through ensure_ready_for_submission()."""
        current_step = _as_step(current)
        state = self._state

        if current_step == WizardStep.SERVICE and state.selected_service is None:
            raise self._reject(current_step, SELECT_SERVICE_BEFORE_PROCEEDING)
        if current_step == WizardStep.APPOINTMENT_TYPE and state.selected_service is None:
            # The chosen appointment type itself does not gate this step
            raise self._reject(current_step, SELECT_SERVICE_FIRST)
        if current_step == WizardStep.DATE_TIME and not state.selections:
            raise self._reject(current_step, SELECT_SLOT_BEFORE_PROCEEDING)
        if current_step == WizardStep.INTAKE:
            self.ensure_ready_for_submission()
            return WizardStep.CONFIRMATION
        if current_step == WizardStep.CONFIRMATION:
            raise self._reject(current_step, CONFIRMATION_LOCKED)
        return WizardStep(current_step + 1)

    def back(self, current: int) -> WizardStep:
        current_step = _as_step(current)
        if current_step == WizardStep.CONFIRMATION:
            raise self._reject(current_step, CONFIRMATION_LOCKED)
        if current_step == WizardStep.SERVICE:
            return WizardStep.SERVICE
        return WizardStep(current_step - 1)

    def ensure_ready_for_submission(self) -> None:
        state = self._state
        if not state.consents_given:
            raise self._reject(WizardStep.INTAKE, AGREE_TO_CONSENTS)
        if state.selected_service is None or not state.selections:
            raise self._reject(WizardStep.INTAKE, COMPLETE_REQUIRED_FIELDS)

    # ------------------------------------------------------------------
    # Exits
    # ------------------------------------------------------------------

    def record_booking_reference(self, book_number: str) -> WizardState:
        """Keep a minted reference after a partial failure so the group can be cancelled."""
        return self._commit(replace(self._state, book_number=book_number))

    def complete_submission(self, book_number: str, rescheduled: bool) -> WizardState:
        self._cache.clear(self._owner_id, self._practitioner_id)
        if rescheduled:
            self._state = exit_reschedule_state(self._state)
        else:
            self._state = reset_wizard_state()
        self._logger.info(
            "Booking submitted",
            extra={"practitioner_id": self._practitioner_id, "book_number": book_number},
        )
        return self._state

    def restore(self, state: WizardState) -> WizardState:
        return self._commit(state)

    def enter_reschedule(self, current: int) -> WizardStep:
        if _as_step(current) != WizardStep.CONFIRMATION or not self._state.book_number:
            raise ValidationFailed("Only a confirmed booking can be rescheduled.")
        self._commit(enter_reschedule_state(self._state, self.today))
        return WizardStep.DATE_TIME

    def start_new_booking(self) -> WizardStep:
        self._cache.clear(self._owner_id, self._practitioner_id)
        self._state = reset_wizard_state()
        return WizardStep.SERVICE

    def reset_after_cancellation(self) -> WizardState:
        self._cache.clear(self._owner_id, self._practitioner_id)
        self._state = reset_wizard_state()
        return self._state

    # ------------------------------------------------------------------

    def _commit(self, state: WizardState) -> WizardState:
        self._state = replace(state, last_updated=self._clock().timestamp())
        self._cache.save(self._owner_id, self._practitioner_id, self._state)
        return self._state

    def _reject(self, step: WizardStep, message: str) -> ValidationFailed:
        self._logger.info(
            "Wizard guard rejected navigation",
            extra={"practitioner_id": self._practitioner_id, "step": int(step), "reason": message},
        )
        return ValidationFailed(message)


def _as_step(value: int) -> WizardStep:
    try:
        return WizardStep(int(value))
    except ValueError:
        raise ValidationFailed(f"Unknown step: {value}") from None


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        return 31
    return (date(year, month + 1, 1) - date(year, month, 1)).days
