"""
error_extraction.py

Field-level errors of a rejected form submission. Errors are read from the
form's required-question regions by position and attached to the field names
of the matching question table in form_layout.
"""

import logging
from collections import OrderedDict
from typing import Optional, Sequence

from form_layout import QUESTION_ERROR_SELECTOR, QUESTION_SELECTOR
from outcomes import sanitize_text

logger = logging.getLogger(__name__)


class FormErrorMap(OrderedDict):
    """Field name -> error text, in form layout order; '' means no error"""

    @classmethod
    def for_fields(cls, field_names: Sequence[str]) -> "FormErrorMap":
        return cls((name, "") for name in field_names)

    def combined(self) -> str:
        """'field: message' pairs of the fields that have an error, comma-separated"""
        parts = []
        for name, message in self.items():
            message = sanitize_text(message)
            if message:
                parts.append(f"{name}: {message}")
        return ", ".join(parts)


def map_question_errors(field_names: Sequence[str],
                        errors: Sequence[Optional[str]]) -> FormErrorMap:
    """Attach positional error texts to field names"""
    if len(errors) != len(field_names):
        logger.warning(
            f"Form shows {len(errors)} required questions, expected {len(field_names)}; "
            f"errors are matched by position and may be misattributed"
        )

    error_map = FormErrorMap.for_fields(field_names)
    for name, message in zip(field_names, errors):
        if message:
            error_map[name] = message
    return error_map


async def extract_form_errors(driver, field_names: Sequence[str]) -> str:
    """Read the visible inline errors of the current form and fold them into one string"""
    errors = await driver.question_errors(QUESTION_SELECTOR, QUESTION_ERROR_SELECTOR)
    error_map = map_question_errors(field_names, errors)
    for name, message in error_map.items():
        if message:
            logger.info(f"-- {name}: {sanitize_text(message)}")
    return error_map.combined()
