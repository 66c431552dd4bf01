"""
outcomes.py

Outcome taxonomy for a processed record. A submission attempt returns a
SubmissionResult tagged with an OutcomeKind; the workflow controller branches
on the tag and the status text written to the outcome log is derived from it.
"""

import re
from dataclasses import dataclass
from enum import Enum

_WHITESPACE = re.compile(r"\s+")


def sanitize_text(text) -> str:
    """Make free text safe to embed in a quoted CSV field."""
    if text is None:
        return ""
    cleaned = str(text).replace("\r", " ").replace("\n", " ").replace('"', "'")
    return _WHITESPACE.sub(" ", cleaned).strip()


class OutcomeKind(str, Enum):
    SUCCESS = "Success"
    REGISTERED_ONLY = "registeredOnly"
    PATIENT_NOT_FOUND = "patientNotFound"
    PATIENT_REGISTERED_BUT_NOT_FOUND = "patientRegisteredButNotFound"
    MEDICINE_NOT_FOUND = "medicineNotFound"
    QUANTITY_REJECTED = "quantityRejected"
    CONSULTATION_VALIDATION_FAILED = "consultationValidationFailed"
    REGISTRATION_VALIDATION_FAILED = "registrationValidationFailed"
    UNEXPECTED_ERROR = "unexpectedError"


SUCCEEDED_KINDS = frozenset({OutcomeKind.SUCCESS, OutcomeKind.REGISTERED_ONLY})


def status_succeeded(status: str) -> bool:
    """True if a status column value, e.g. "registeredOnly", names a succeeded kind"""
    try:
        return OutcomeKind(status.split(":", 1)[0].strip()) in SUCCEEDED_KINDS
    except ValueError:
        return False


@dataclass(frozen=True)
class SubmissionResult:
    """Result of one consultation or registration attempt"""
    kind: OutcomeKind
    details: str = ""

    @property
    def succeeded(self) -> bool:
        return self.kind in SUCCEEDED_KINDS

    def status_text(self) -> str:
        """Status column value, e.g. 'quantityRejected' or 'registrationValidationFailed: gp: Required'"""
        details = sanitize_text(self.details)
        if details:
            return f"{self.kind.value}: {details}"
        return self.kind.value

    @classmethod
    def success(cls) -> "SubmissionResult":
        return cls(OutcomeKind.SUCCESS)

    @classmethod
    def failure(cls, kind: OutcomeKind, details: str = "") -> "SubmissionResult":
        return cls(kind, details)
