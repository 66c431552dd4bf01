"""
form_layout.py

Labels, selectors and question order of the two PharmOutcomes forms.

The question tables map each "required question" region of a form, by
on-screen position, to a logical field name. Error extraction is positional,
so the order here must match the form exactly.
"""

from dataclasses import dataclass
from typing import Tuple

QUESTION_SELECTOR = "div.provisionbody.required"
QUESTION_ERROR_SELECTOR = "p.error"
SUBMIT_SELECTOR = "#submit"
DATE_PICKER_SELECTOR = "#ui-datepicker-div"

REGISTRATION_QUESTIONS: Tuple[str, ...] = (
    "date",
    "name",
    "dob",
    "gender",
    "ethnicity",
    "postcode",
    "address",
    "consent",
    "gp",
)

CONSULTATION_QUESTIONS: Tuple[str, ...] = (
    "date",
    "patient",
    "staffName",
    "staffRole",
    "symptom",
    "supplied",
    "levyStatus",
    "medication",
    "quantity",
)

GENDER_CHOICES = ("Male", "Female")
GENDER_FALLBACK = "Trans"


def quote_text(text: str) -> str:
    """Escape text for use inside a double-quoted selector string"""
    return text.replace("\\", "\\\\").replace('"', '\\"')


@dataclass(frozen=True)
class ConsultationForm:
    date_label: str = "Date of consultation"
    patient_label: str = "Patient"
    patient_popup: str = "#ui-id-1"
    staff_name_label: str = "Name of pharmacist or staff member"
    staff_role_label: str = "Role"
    symptom_label: str = "Presenting symptom"
    supplied_label: str = "Patient has been supplied medicine under the service"
    levy_status_label: str = "Levy Status"
    medication_label: str = "Medication supplied"
    medication_popup: str = "#ui-id-2"
    quantity_label: str = "Quantity"
    quantity_error: str = "div.provisionbody.required:has-text('Quantity') p.error"
    questions: Tuple[str, ...] = CONSULTATION_QUESTIONS

    def patient_match(self, dob: str) -> str:
        """Suggestion entry whose text contains the date of birth"""
        return f'{self.patient_popup} li a:has-text("{quote_text(dob)}")'

    @property
    def first_medication(self) -> str:
        return f"{self.medication_popup} li a"


@dataclass(frozen=True)
class RegistrationForm:
    date_label: str = "Date of registration"
    first_name_label: str = "First name"
    last_name_label: str = "Surname"
    dob_label: str = "Date of birth"
    ethnicity_label: str = "Ethnicity"
    postcode_label: str = "Postcode"
    address_label: str = "Address"
    consent_label: str = "Patient has given consent"
    practice_label: str = "GP Practice"
    practice_popup: str = "#ui-id-3"
    questions: Tuple[str, ...] = REGISTRATION_QUESTIONS

    @property
    def first_practice(self) -> str:
        return f"{self.practice_popup} li a"


def gender_choice(gender: str) -> str:
    """Exact 'Male' or 'Female' selects that control, anything else selects Trans"""
    if gender in GENDER_CHOICES:
        return gender
    return GENDER_FALLBACK
