"""Unit tests for positional field-error extraction."""

import logging

from error_extraction import FormErrorMap, extract_form_errors, map_question_errors
from form_layout import CONSULTATION_QUESTIONS, REGISTRATION_QUESTIONS


class TestFormErrorMap:

    def test_for_fields_starts_blank_in_order(self):
        error_map = FormErrorMap.for_fields(["date", "name", "dob"])

        assert list(error_map.items()) == [("date", ""), ("name", ""), ("dob", "")]

    def test_combined_skips_fields_without_errors(self):
        error_map = FormErrorMap.for_fields(["date", "name", "dob"])
        error_map["dob"] = "Invalid date"
        error_map["date"] = "Required"

        assert error_map.combined() == "date: Required, dob: Invalid date"

    def test_combined_sanitizes_messages(self):
        error_map = FormErrorMap.for_fields(["address"])
        error_map["address"] = 'Line one\nmust not contain "quotes"'

        assert error_map.combined() == "address: Line one must not contain 'quotes'"

    def test_no_errors_is_empty(self):
        assert FormErrorMap.for_fields(REGISTRATION_QUESTIONS).combined() == ""


class TestMapQuestionErrors:

    def test_errors_attach_by_position(self):
        errors = [None] * 8 + ["Select a practice"]

        error_map = map_question_errors(REGISTRATION_QUESTIONS, errors)

        assert error_map["gp"] == "Select a practice"
        assert error_map["date"] == ""

    def test_count_mismatch_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="error_extraction"):
            error_map = map_question_errors(["date", "name"], ["Required"])

        assert error_map.combined() == "date: Required"
        assert "expected 2" in caplog.text


class TestExtractFormErrors:

    async def test_reads_question_errors_from_driver(self, make_driver):
        errors = [None, "Patient not selected", None, None, None, None, None, None, None]
        driver = make_driver(question_errors=errors)

        details = await extract_form_errors(driver, CONSULTATION_QUESTIONS)

        assert details == "patient: Patient not selected"
