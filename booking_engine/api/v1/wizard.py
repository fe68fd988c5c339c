from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from booking_engine.api.v1.auth import get_current_user
from booking_engine.api.v1.schemas import (
    AppointmentTypeSchema,
    CancelResponseSchema,
    CancelSchema,
    DayAvailabilitySchema,
    IntakeSchema,
    NavigateMonthSchema,
    NavigateSchema,
    SelectServiceSchema,
    StepResponseSchema,
    ToggleSlotSchema,
    ViewDateSchema,
    WizardStateSchema,
    WizardViewSchema,
)
from booking_engine.application.use_cases.booking_flow import BookingFlowUseCase
from booking_engine.application.use_cases.service_options import format_specialties
from booking_engine.domain.entities.user import CurrentUser
from booking_engine.wiring.dependencies import get_booking_flow

router = APIRouter(prefix="/api/book/{practitioner_id}")


@router.get("", response_model=WizardViewSchema)
async def open_wizard(
    practitioner_id: str,
    step: int = Query(1),
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    view = await uc.open(user, practitioner_id, step)
    return WizardViewSchema.from_view(view, specialties=format_specialties(view.practitioner.specialty))


@router.get("/availability", response_model=DayAvailabilitySchema)
async def get_availability(
    practitioner_id: str,
    on_date: date | None = Query(None, alias="date"),
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    day = await uc.availability(user, practitioner_id, on_date)
    return DayAvailabilitySchema.from_day(day)


@router.post("/service", response_model=WizardStateSchema)
async def choose_service(
    practitioner_id: str,
    req: SelectServiceSchema,
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    state = await uc.choose_service(user, practitioner_id, req.service_id, req.session_index)
    return WizardStateSchema.from_state(state)


@router.post("/appointment-type", response_model=WizardStateSchema)
async def choose_appointment_type(
    practitioner_id: str,
    req: AppointmentTypeSchema,
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    state = await uc.choose_appointment_type(user, practitioner_id, req.appointment_type)
    return WizardStateSchema.from_state(state)


@router.post("/date", response_model=WizardStateSchema)
async def view_date(
    practitioner_id: str,
    req: ViewDateSchema,
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    state = await uc.view_date(user, practitioner_id, req.date)
    return WizardStateSchema.from_state(state)


@router.post("/month", response_model=WizardStateSchema)
async def navigate_month(
    practitioner_id: str,
    req: NavigateMonthSchema,
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    state = await uc.navigate_month(user, practitioner_id, req.direction)
    return WizardStateSchema.from_state(state)


@router.post("/slots/toggle", response_model=WizardStateSchema)
async def toggle_slot(
    practitioner_id: str,
    req: ToggleSlotSchema,
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    state = await uc.toggle_slot(user, practitioner_id, req.date, req.time)
    return WizardStateSchema.from_state(state)


@router.delete("/slots", response_model=WizardStateSchema)
async def clear_slots(
    practitioner_id: str,
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    state = await uc.clear_selections(user, practitioner_id)
    return WizardStateSchema.from_state(state)


@router.put("/intake", response_model=WizardStateSchema)
async def update_intake(
    practitioner_id: str,
    req: IntakeSchema,
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    fields = req.model_dump(exclude_none=True, exclude={"consent_agreed", "policy_agreed"})
    state = await uc.update_intake(
        user,
        practitioner_id,
        consent_agreed=req.consent_agreed,
        policy_agreed=req.policy_agreed,
        **fields,
    )
    return WizardStateSchema.from_state(state)


@router.post("/navigate", response_model=StepResponseSchema)
async def navigate(
    practitioner_id: str,
    req: NavigateSchema,
    step: int = Query(1),
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    result = await uc.go_to(user, practitioner_id, step, req.target)
    return StepResponseSchema.from_result(result)


@router.post("/next", response_model=StepResponseSchema)
async def next_step(
    practitioner_id: str,
    step: int = Query(1),
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    result = await uc.next(user, practitioner_id, step)
    return StepResponseSchema.from_result(result)


@router.post("/back", response_model=StepResponseSchema)
async def previous_step(
    practitioner_id: str,
    step: int = Query(1),
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    result = await uc.back(user, practitioner_id, step)
    return StepResponseSchema.from_result(result)


@router.post("/reschedule", response_model=StepResponseSchema)
async def reschedule(
    practitioner_id: str,
    step: int = Query(5),
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    result = await uc.reschedule(user, practitioner_id, step)
    return StepResponseSchema.from_result(result)


@router.post("/start-new", response_model=StepResponseSchema)
async def start_new(
    practitioner_id: str,
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    result = await uc.start_new(user, practitioner_id)
    return StepResponseSchema.from_result(result)


@router.post("/cancel", response_model=CancelResponseSchema)
async def cancel(
    practitioner_id: str,
    req: CancelSchema | None = None,
    step: int = Query(1),
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    confirm = req.confirm if req else False
    result = await uc.cancel(user, practitioner_id, step, confirm=confirm)
    return CancelResponseSchema.from_result(result)


@router.get("/confirmation.ics")
async def export_calendar(
    practitioner_id: str,
    user: CurrentUser | None = Depends(get_current_user),
    uc: BookingFlowUseCase = Depends(get_booking_flow),
):
    document = await uc.calendar_export(user, practitioner_id)
    return Response(
        content=document,
        media_type="text/calendar",
        headers={"Content-Disposition": 'attachment; filename="appointment.ics"'},
    )
