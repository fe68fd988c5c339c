from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import IntEnum

from booking_engine.domain.entities.practitioner import SelectedService
from booking_engine.domain.entities.selection import Selection


class WizardStep(IntEnum):
    SERVICE = 1
    APPOINTMENT_TYPE = 2
    DATE_TIME = 3
    INTAKE = 4
    CONFIRMATION = 5


STEP_TITLES = {
    WizardStep.SERVICE: "Specialty",
    WizardStep.APPOINTMENT_TYPE: "Appointment Type",
    WizardStep.DATE_TIME: "Date & Time",
    WizardStep.INTAKE: "Basic Information",
    WizardStep.CONFIRMATION: "Confirmation",
}


@dataclass(frozen=True)
class IntakeForm:
    patient_name: str = ""
    patient_email: str = ""
    patient_phone: str = ""
    reason_for_visit: str = ""


@dataclass(frozen=True)
class WizardState:
    selected_service: SelectedService | None = None
    appointment_type: str = ""  # modality chosen on step 2, e.g. "in-person" | "virtual"
    selections: tuple[Selection, ...] = ()
    form_data: IntakeForm = IntakeForm()
    consent_agreed: bool = False
    policy_agreed: bool = False
    current_date: date | None = None  # last viewed civil date
    book_number: str | None = None
    reschedule_mode: bool = False
    last_updated: float | None = None

    @property
    def consents_given(self) -> bool:
        return self.consent_agreed and self.policy_agreed

    @property
    def ready_for_submission(self) -> bool:
        return self.selected_service is not None and len(self.selections) > 0 and self.consents_given
