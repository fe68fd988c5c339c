from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from zoneinfo import ZoneInfo

from booking_engine.application.exceptions import (
    AuthorizationFailed,
    PractitionerNotFound,
    ValidationFailed,
)
from booking_engine.application.ports.practitioner_directory import PractitionerDirectoryPort
from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.application.ports.wizard_cache import WizardCachePort
from booking_engine.application.use_cases.availability import AvailabilityResolver
from booking_engine.application.use_cases.cancel_booking import CancellationCoordinator, CancellationOutcome
from booking_engine.application.use_cases.confirmation import (
    ConfirmationRecovery,
    ConfirmationSummary,
    build_confirmation_summary,
)
from booking_engine.application.use_cases.service_options import build_service_options, select_service
from booking_engine.application.use_cases.submit_booking import (
    MODE_RESCHEDULE,
    BookingSubmissionCoordinator,
    SubmissionOutcome,
)
from booking_engine.application.use_cases.wizard import WizardStateMachine
from booking_engine.application.utils.calendar_export import build_ics
from booking_engine.application.utils.clock import Clock
from booking_engine.application.utils.time_format import to_canonical
from booking_engine.domain.entities.practitioner import PractitionerProfile, ServiceOption
from booking_engine.domain.entities.slot_status import Available, DayAvailability
from booking_engine.domain.entities.user import CurrentUser
from booking_engine.domain.entities.wizard_state import WizardState, WizardStep

SIGN_IN_REDIRECT = "/auth/signin"
FIND_PRACTITIONER_REDIRECT = "/find-practitioner"

SIGN_IN_REQUIRED = "Please sign in to book an appointment."
PATIENTS_ONLY = "Only patients can book appointments."
SLOT_NOT_AVAILABLE = "This time slot is not available."
CONFIRM_CANCELLATION = "Please confirm the cancellation."
NOTHING_TO_EXPORT = "There is no confirmed booking to export."


@dataclass(frozen=True)
class WizardView:
    step: WizardStep
    state: WizardState
    practitioner: PractitionerProfile
    services: list[ServiceOption]
    summary: ConfirmationSummary | None = None


@dataclass(frozen=True)
class StepResult:
    step: WizardStep
    state: WizardState
    submission: SubmissionOutcome | None = None
    summary: ConfirmationSummary | None = None


@dataclass(frozen=True)
class CancelResult:
    redirect_to: str | None = None
    outcome: CancellationOutcome | None = None
    state: WizardState = field(default_factory=WizardState)


def authorize(user: CurrentUser | None) -> CurrentUser:
    if user is None:
        raise AuthorizationFailed(SIGN_IN_REQUIRED, redirect_to=SIGN_IN_REDIRECT, status_code=401)
    if not user.is_patient:
        raise AuthorizationFailed(PATIENTS_ONLY, redirect_to=FIND_PRACTITIONER_REDIRECT, status_code=403)
    return user


class BookingFlowUseCase:
    """Drives one patient's booking wizard for one practitioner, request by request.

    Every call loads the cached wizard state, applies one action and persists the
    result. Step 5 without a booking reference is recovered from the store.
    """

    def __init__(
        self,
        store: ReservationStorePort,
        directory: PractitionerDirectoryPort,
        cache: WizardCachePort,
        clock: Clock,
        timezone: ZoneInfo,
        morning_cutoff_hour: int = 12,
        default_rate: int = 100,
    ) -> None:
        self._store = store
        self._directory = directory
        self._cache = cache
        self._clock = clock
        self._timezone = timezone
        self._default_rate = default_rate
        self._availability = AvailabilityResolver(store, clock, morning_cutoff_hour=morning_cutoff_hour)
        self._submitter = BookingSubmissionCoordinator(store, clock)
        self._canceller = CancellationCoordinator(store)
        self._recovery = ConfirmationRecovery(store)
        self._logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def open(self, user: CurrentUser | None, practitioner_id: str, step: int = 1) -> WizardView:
        patient = authorize(user)
        profile = await self._get_practitioner(practitioner_id)
        machine = await self._machine(patient, practitioner_id, step)
        current = _step_or_default(step)
        summary = None
        if current == WizardStep.CONFIRMATION and machine.state.book_number:
            summary = build_confirmation_summary(machine.state)
        return WizardView(
            step=current,
            state=machine.state,
            practitioner=profile,
            services=build_service_options(profile, default_rate=self._default_rate),
            summary=summary,
        )

    async def availability(
        self,
        user: CurrentUser | None,
        practitioner_id: str,
        on_date: date | None = None,
    ) -> DayAvailability:
        patient = authorize(user)
        machine = await self._machine(patient, practitioner_id)
        if on_date is not None and on_date != machine.state.current_date:
            machine.view_date(on_date)
        return await self._availability.resolve(practitioner_id, machine.viewed_date, patient_id=patient.id)

    async def calendar_export(self, user: CurrentUser | None, practitioner_id: str) -> str:
        patient = authorize(user)
        machine = await self._machine(patient, practitioner_id, WizardStep.CONFIRMATION)
        state = machine.state
        if not state.book_number or state.selected_service is None:
            raise ValidationFailed(NOTHING_TO_EXPORT)
        profile = await self._directory.get_practitioner(practitioner_id)
        return build_ics(
            booking_reference=state.book_number,
            service_name=state.selected_service.service_name,
            appointments=list(state.selections),
            tz=self._timezone,
            practitioner_name=profile.full_name if profile else None,
            now=self._clock(),
        )

    # ------------------------------------------------------------------
    # Step 1-4 actions
    # ------------------------------------------------------------------

    async def choose_service(
        self,
        user: CurrentUser | None,
        practitioner_id: str,
        service_id: str,
        session_index: int,
    ) -> WizardState:
        patient = authorize(user)
        profile = await self._get_practitioner(practitioner_id)
        options = build_service_options(profile, default_rate=self._default_rate)
        machine = await self._machine(patient, practitioner_id)
        return machine.select_service(select_service(options, service_id, session_index))

    async def choose_appointment_type(
        self, user: CurrentUser | None, practitioner_id: str, appointment_type: str
    ) -> WizardState:
        machine = await self._machine(authorize(user), practitioner_id)
        return machine.set_appointment_type(appointment_type)

    async def view_date(self, user: CurrentUser | None, practitioner_id: str, on_date: date) -> WizardState:
        machine = await self._machine(authorize(user), practitioner_id)
        return machine.view_date(on_date)

    async def navigate_month(self, user: CurrentUser | None, practitioner_id: str, direction: int) -> WizardState:
        machine = await self._machine(authorize(user), practitioner_id)
        machine.navigate_month(direction)
        return machine.state

    async def toggle_slot(
        self,
        user: CurrentUser | None,
        practitioner_id: str,
        on_date: date,
        time: str,
    ) -> WizardState:
        patient = authorize(user)
        machine = await self._machine(patient, practitioner_id)
        try:
            canonical = to_canonical(time)
        except ValueError as e:
            raise ValidationFailed(str(e)) from e

        if not machine.is_selected(on_date, canonical):
            day = await self._availability.resolve(practitioner_id, on_date, patient_id=patient.id)
            if not isinstance(day.status_for(canonical), Available):
                self._logger.info(
                    "Rejected toggle of unavailable slot",
                    extra={"practitioner_id": practitioner_id, "date": on_date.isoformat(), "time": canonical},
                )
                raise ValidationFailed(SLOT_NOT_AVAILABLE)

        machine.toggle_selection(on_date, canonical)
        return machine.state

    async def clear_selections(self, user: CurrentUser | None, practitioner_id: str) -> WizardState:
        machine = await self._machine(authorize(user), practitioner_id)
        return machine.clear_selections()

    async def update_intake(
        self,
        user: CurrentUser | None,
        practitioner_id: str,
        consent_agreed: bool | None = None,
        policy_agreed: bool | None = None,
        **fields: str,
    ) -> WizardState:
        machine = await self._machine(authorize(user), practitioner_id)
        if fields:
            machine.update_form(**fields)
        if consent_agreed is not None or policy_agreed is not None:
            machine.set_consents(consent_agreed=consent_agreed, policy_agreed=policy_agreed)
        return machine.state

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def go_to(self, user: CurrentUser | None, practitioner_id: str, current: int, target: int) -> StepResult:
        machine = await self._machine(authorize(user), practitioner_id, current)
        return StepResult(step=machine.go_to(current, target), state=machine.state)

    async def back(self, user: CurrentUser | None, practitioner_id: str, current: int) -> StepResult:
        machine = await self._machine(authorize(user), practitioner_id, current)
        return StepResult(step=machine.back(current), state=machine.state)

    async def next(self, user: CurrentUser | None, practitioner_id: str, current: int) -> StepResult:
        patient = authorize(user)
        machine = await self._machine(patient, practitioner_id, current)
        step = machine.next_step(current)
        if step != WizardStep.CONFIRMATION:
            return StepResult(step=step, state=machine.state)
        return await self._submit(machine, patient, practitioner_id)

    async def _submit(self, machine: WizardStateMachine, patient: CurrentUser, practitioner_id: str) -> StepResult:
        outcome = await self._submitter.submit(practitioner_id, patient.id, machine.state)

        if not outcome.success:
            if outcome.book_number and outcome.created:
                # Keep the partial group cancellable
                machine.record_booking_reference(outcome.book_number)
            created = {(r.date, r.time) for r in outcome.created}
            partial = replace(
                machine.state,
                book_number=outcome.book_number,
                selections=tuple(s for s in machine.state.selections if s.key in created),
            )
            summary = build_confirmation_summary(partial, failed=tuple(f.message for f in outcome.failed))
            return StepResult(step=WizardStep.INTAKE, state=machine.state, submission=outcome, summary=summary)

        confirmed = replace(machine.state, book_number=outcome.book_number, reschedule_mode=False)
        summary = build_confirmation_summary(confirmed)
        machine.complete_submission(outcome.book_number, rescheduled=outcome.mode == MODE_RESCHEDULE)
        return StepResult(step=WizardStep.CONFIRMATION, state=confirmed, submission=outcome, summary=summary)

    # ------------------------------------------------------------------
    # Step 5 exits
    # ------------------------------------------------------------------

    async def reschedule(self, user: CurrentUser | None, practitioner_id: str, current: int) -> StepResult:
        machine = await self._machine(authorize(user), practitioner_id, current)
        return StepResult(step=machine.enter_reschedule(current), state=machine.state)

    async def start_new(self, user: CurrentUser | None, practitioner_id: str) -> StepResult:
        machine = await self._machine(authorize(user), practitioner_id)
        return StepResult(step=machine.start_new_booking(), state=machine.state)

    async def cancel(
        self,
        user: CurrentUser | None,
        practitioner_id: str,
        current: int,
        confirm: bool = False,
    ) -> CancelResult:
        machine = await self._machine(authorize(user), practitioner_id, current)
        book_number = machine.state.book_number
        if not book_number:
            return CancelResult(redirect_to=FIND_PRACTITIONER_REDIRECT, state=machine.state)
        if not confirm:
            raise ValidationFailed(CONFIRM_CANCELLATION)

        outcome = await self._canceller.cancel(book_number)
        if not outcome.success:
            # reference and cached state stay as they were so the cancel can be retried
            return CancelResult(outcome=outcome, state=machine.state)
        machine.reset_after_cancellation()
        return CancelResult(redirect_to=FIND_PRACTITIONER_REDIRECT, outcome=outcome, state=machine.state)

    # ------------------------------------------------------------------

    async def _get_practitioner(self, practitioner_id: str) -> PractitionerProfile:
        profile = await self._directory.get_practitioner(practitioner_id)
        if profile is None:
            raise PractitionerNotFound(f"Practitioner {practitioner_id} not found.")
        return profile

    async def _machine(self, patient: CurrentUser, practitioner_id: str, step: int = 1) -> WizardStateMachine:
        machine = WizardStateMachine(self._cache, patient.id, practitioner_id, self._clock)
        machine.load()
        if step == WizardStep.CONFIRMATION and not machine.state.book_number:
            recovered = await self._recovery.recover(practitioner_id, patient.id)
            if recovered is not None:
                machine.restore(recovered)
        return machine


def _step_or_default(step: int) -> WizardStep:
    try:
        return WizardStep(step)
    except ValueError:
        return WizardStep.SERVICE
