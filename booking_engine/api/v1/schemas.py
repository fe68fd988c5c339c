from datetime import date as Date
from typing import Any, Literal

from pydantic import BaseModel, Field

from booking_engine.application.use_cases.booking_flow import CancelResult, StepResult, WizardView
from booking_engine.application.use_cases.confirmation import ConfirmationSummary
from booking_engine.application.use_cases.submit_booking import SubmissionOutcome
from booking_engine.domain.entities.practitioner import ServiceOption
from booking_engine.domain.entities.slot_status import Conflicted, DayAvailability, Occupied, SlotView
from booking_engine.domain.entities.wizard_state import STEP_TITLES, WizardState


# ----------------------------------------------------------------------
# Reservation store API
# ----------------------------------------------------------------------

class CreateReservationSchema(BaseModel):
    practitioner_id: str | None = None
    patient_id: str | None = None
    date: str | None = None
    time: str | None = None
    service_type: str | None = None
    price: float | None = None
    reason: str | None = None
    book_number: str | None = None


class RescheduleRowSchema(BaseModel):
    practitioner_id: str
    patient_id: str | None = None
    date: str
    time: str
    service_type: str
    price: float | None = None
    reason: str | None = None
    status: str | None = None
    book_number: str | None = None


class UpdateReservationSchema(BaseModel):
    id: str | None = None
    status: str | None = None
    reason: str | None = None
    book_number: str | None = None
    reschedule_data: list[RescheduleRowSchema] | None = None


# ----------------------------------------------------------------------
# Booking wizard API
# ----------------------------------------------------------------------

class SelectServiceSchema(BaseModel):
    service_id: str
    session_index: int = Field(ge=0)


class AppointmentTypeSchema(BaseModel):
    appointment_type: str


class ViewDateSchema(BaseModel):
    date: Date


class NavigateMonthSchema(BaseModel):
    direction: Literal[-1, 1]


class ToggleSlotSchema(BaseModel):
    date: Date
    time: str


class IntakeSchema(BaseModel):
    patient_name: str | None = None
    patient_email: str | None = None
    patient_phone: str | None = None
    reason_for_visit: str | None = None
    consent_agreed: bool | None = None
    policy_agreed: bool | None = None


class NavigateSchema(BaseModel):
    target: int


class CancelSchema(BaseModel):
    confirm: bool = False


class SelectedServiceSchema(BaseModel):
    service_id: str
    service_name: str
    session_type: str
    price: float


class SelectionSchema(BaseModel):
    date: Date
    time: str
    display_date: str
    display_time: str


class WizardStateSchema(BaseModel):
    selected_service: SelectedServiceSchema | None = None
    appointment_type: str = ""
    selections: list[SelectionSchema] = Field(default_factory=list)
    form_data: dict[str, str] = Field(default_factory=dict)
    consent_agreed: bool = False
    policy_agreed: bool = False
    current_date: Date | None = None
    book_number: str | None = None
    reschedule_mode: bool = False

    @classmethod
    def from_state(cls, state: WizardState) -> "WizardStateSchema":
        service = state.selected_service
        return cls(
            selected_service=(
                SelectedServiceSchema(
                    service_id=service.service_id,
                    service_name=service.service_name,
                    session_type=service.session_type,
                    price=service.price,
                )
                if service
                else None
            ),
            appointment_type=state.appointment_type,
            selections=[
                SelectionSchema(date=s.date, time=s.time, display_date=s.display_date, display_time=s.display_time)
                for s in state.selections
            ],
            form_data={
                "patient_name": state.form_data.patient_name,
                "patient_email": state.form_data.patient_email,
                "patient_phone": state.form_data.patient_phone,
                "reason_for_visit": state.form_data.reason_for_visit,
            },
            consent_agreed=state.consent_agreed,
            policy_agreed=state.policy_agreed,
            current_date=state.current_date,
            book_number=state.book_number,
            reschedule_mode=state.reschedule_mode,
        )


class AppointmentLineSchema(BaseModel):
    display_date: str
    display_time: str
    price: float


class ConfirmationSummarySchema(BaseModel):
    book_number: str | None
    service: str
    appointments: list[AppointmentLineSchema]
    count: int
    total_price: float
    failed: list[str] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: ConfirmationSummary | None) -> "ConfirmationSummarySchema | None":
        if summary is None:
            return None
        return cls(
            book_number=summary.book_number,
            service=summary.service,
            appointments=[
                AppointmentLineSchema(display_date=a.display_date, display_time=a.display_time, price=a.price)
                for a in summary.appointments
            ],
            count=summary.count,
            total_price=summary.total_price,
            failed=list(summary.failed),
        )


class ServiceSessionSchema(BaseModel):
    type: str
    price: float


class ServiceOptionSchema(BaseModel):
    id: str
    name: str
    sessions: list[ServiceSessionSchema]

    @classmethod
    def from_option(cls, option: ServiceOption) -> "ServiceOptionSchema":
        return cls(
            id=option.id,
            name=option.name,
            sessions=[ServiceSessionSchema(type=s.type, price=s.price) for s in option.sessions],
        )


class PractitionerSchema(BaseModel):
    id: str
    full_name: str
    specialties: str
    clinic: str | None = None
    address: str | None = None
    rating: float | None = None
    total_reviews: int | None = None


class WizardViewSchema(BaseModel):
    step: int
    step_title: str
    state: WizardStateSchema
    practitioner: PractitionerSchema
    services: list[ServiceOptionSchema]
    summary: ConfirmationSummarySchema | None = None

    @classmethod
    def from_view(cls, view: WizardView, specialties: str) -> "WizardViewSchema":
        profile = view.practitioner
        return cls(
            step=int(view.step),
            step_title=STEP_TITLES[view.step],
            state=WizardStateSchema.from_state(view.state),
            practitioner=PractitionerSchema(
                id=profile.id,
                full_name=profile.full_name,
                specialties=specialties,
                clinic=profile.clinic,
                address=profile.address,
                rating=profile.rating,
                total_reviews=profile.total_reviews,
            ),
            services=[ServiceOptionSchema.from_option(o) for o in view.services],
            summary=ConfirmationSummarySchema.from_summary(view.summary),
        )


class SlotSchema(BaseModel):
    time: str
    display: str
    period: str
    status: str
    bookable: bool
    blocked: bool = False
    service: str | None = None
    patient_name: str | None = None
    other_practitioner: str | None = None

    @classmethod
    def from_view(cls, view: SlotView) -> "SlotSchema":
        status = view.status
        extra: dict[str, Any] = {}
        if isinstance(status, Occupied):
            extra = {"blocked": status.blocked, "service": status.service, "patient_name": status.patient_name}
        elif isinstance(status, Conflicted):
            extra = {"service": status.service, "other_practitioner": status.other_practitioner}
        return cls(
            time=view.slot.time,
            display=view.slot.display,
            period=view.slot.period,
            status=status.kind,
            bookable=view.is_bookable,
            **extra,
        )


class DayAvailabilitySchema(BaseModel):
    date: Date
    morning: list[SlotSchema]
    afternoon: list[SlotSchema]
    loading_failed: bool
    past_date: bool
    morning_cutoff_applied: bool
    errors: list[str]

    @classmethod
    def from_day(cls, day: DayAvailability) -> "DayAvailabilitySchema":
        return cls(
            date=day.date,
            morning=[SlotSchema.from_view(v) for v in day.morning],
            afternoon=[SlotSchema.from_view(v) for v in day.afternoon],
            loading_failed=day.loading_failed,
            past_date=day.past_date,
            morning_cutoff_applied=day.morning_cutoff_applied,
            errors=list(day.errors),
        )


class SubmissionSchema(BaseModel):
    success: bool
    mode: str
    book_number: str | None
    message: str
    failed: list[str] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: SubmissionOutcome | None) -> "SubmissionSchema | None":
        if outcome is None:
            return None
        return cls(
            success=outcome.success,
            mode=outcome.mode,
            book_number=outcome.book_number,
            message=outcome.message,
            failed=[f.message for f in outcome.failed],
        )


class StepResponseSchema(BaseModel):
    step: int
    step_title: str
    state: WizardStateSchema
    submission: SubmissionSchema | None = None
    summary: ConfirmationSummarySchema | None = None

    @classmethod
    def from_result(cls, result: StepResult) -> "StepResponseSchema":
        return cls(
            step=int(result.step),
            step_title=STEP_TITLES[result.step],
            state=WizardStateSchema.from_state(result.state),
            submission=SubmissionSchema.from_outcome(result.submission),
            summary=ConfirmationSummarySchema.from_summary(result.summary),
        )


class CancelResponseSchema(BaseModel):
    redirect_to: str | None = None
    cancelled: bool
    count: int = 0
    message: str | None = None
    state: WizardStateSchema

    @classmethod
    def from_result(cls, result: CancelResult) -> "CancelResponseSchema":
        outcome = result.outcome
        return cls(
            redirect_to=result.redirect_to,
            cancelled=bool(outcome and outcome.success),
            count=outcome.count if outcome else 0,
            message=outcome.message if outcome else None,
            state=WizardStateSchema.from_state(result.state),
        )
