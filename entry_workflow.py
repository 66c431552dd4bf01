#!/usr/bin/env python3
"""
Entry Workflow Controller
Description:
Drives one input record through the PharmOutcomes consultation form. When the
patient cannot be found the controller registers the patient and tries the
consultation once more. Every record ends with exactly one outcome.

Each submission attempt returns a SubmissionResult tagged with an OutcomeKind;
the controller branches on the tag. Anything else that goes wrong while
driving the page is caught at the record boundary and reported as
unexpectedError, so one bad record never stops the run.
"""

import logging
import re
from enum import Enum
from typing import Optional, Sequence

from config_manager import SiteConfig, TimeoutConfig
from error_extraction import extract_form_errors
from form_layout import (
    DATE_PICKER_SELECTOR,
    SUBMIT_SELECTOR,
    ConsultationForm,
    RegistrationForm,
    gender_choice,
)
from outcomes import OutcomeKind, SubmissionResult
from records import InputRecord, OutcomeRecord
from run_context import RunContext
from secondary_auth import challenge_present, handle_secondary_auth

logger = logging.getLogger(__name__)


class AttemptPhase(Enum):
    FIRST_ATTEMPT = "firstAttempt"
    POST_REGISTRATION_ATTEMPT = "postRegistrationAttempt"


class EntryWorkflowController:
    """
    State machine for a single record:

        SubmittingConsultation(first) --patient not found--> RegisteringPatient
        RegisteringPatient --accepted--> SubmittingConsultation(post-registration)
        SubmittingConsultation(post-registration) --patient not found--> Failed

    Any other result of a consultation attempt is terminal.
    """

    def __init__(self, context: RunContext,
                 site: Optional[SiteConfig] = None,
                 timeouts: Optional[TimeoutConfig] = None,
                 consultation_form: Optional[ConsultationForm] = None,
                 registration_form: Optional[RegistrationForm] = None):
        self.context = context
        self.driver = context.driver
        self.site = site or SiteConfig()
        self.timeouts = timeouts or TimeoutConfig()
        self.consultation_form = consultation_form or ConsultationForm()
        self.registration_form = registration_form or RegistrationForm()
        self._failed_location = re.compile(self.site.submission_failed_pattern)
        self.logger = logging.getLogger(f"{__name__}.EntryWorkflowController")

    async def process_record(self, record: InputRecord) -> OutcomeRecord:
        """Run one record to its terminal outcome; never raises for per-record failures"""
        self.logger.info(f"Processing record: {record.search_name} (DOB {record.dob})")
        try:
            result = await self.run_record(record)
        except Exception as e:
            self.logger.error(f"Unexpected error for {record.search_name}: {type(e).__name__}: {e}")
            result = SubmissionResult.failure(OutcomeKind.UNEXPECTED_ERROR, f"{type(e).__name__}: {e}")

        outcome = OutcomeRecord(record, result.status_text(), self.context.elapsed_seconds())
        if result.succeeded:
            self.logger.info(f"Outcome: {outcome.status} ({outcome.time:.1f}s)")
        else:
            self.logger.warning(f"Outcome: {outcome.status} ({outcome.time:.1f}s)")
        return outcome

    async def run_record(self, record: InputRecord) -> SubmissionResult:
        """At most two consultation attempts with at most one registration between them"""
        phase = AttemptPhase.FIRST_ATTEMPT
        while True:
            after_registration = phase is AttemptPhase.POST_REGISTRATION_ATTEMPT
            result = await self.submit_consultation(record, after_registration)

            if result.kind is not OutcomeKind.PATIENT_NOT_FOUND:
                return result

            if after_registration:
                self.logger.warning("Patient was registered but still cannot be found")
                return SubmissionResult.failure(OutcomeKind.PATIENT_REGISTERED_BUT_NOT_FOUND)

            self.logger.info("Patient not found, registering patient")
            registration = await self.register_patient(record)
            if not registration.succeeded:
                return registration

            phase = AttemptPhase.POST_REGISTRATION_ATTEMPT

    # Consultation

    async def submit_consultation(self, record: InputRecord, after_registration: bool = False) -> SubmissionResult:
        form = self.consultation_form
        driver = self.driver

        self.logger.info("-- Opening consultation form")
        await self._open(self.site.consultation_url)

        self.logger.info(f"-- Date: {record.date}")
        await driver.fill_label(form.date_label, record.date)
        await driver.dismiss_transient(DATE_PICKER_SELECTOR, self.timeouts.transient_picker)

        if not await self._select_patient(record):
            return SubmissionResult.failure(OutcomeKind.PATIENT_NOT_FOUND)

        await self._fill_consultation_details(record)

        if not await self._select_medication(record):
            return SubmissionResult.failure(OutcomeKind.MEDICINE_NOT_FOUND)

        if await self._quantity_rejected(record):
            return SubmissionResult.failure(OutcomeKind.QUANTITY_REJECTED)

        dry_run_kind = OutcomeKind.REGISTERED_ONLY if after_registration else OutcomeKind.SUCCESS
        return await self._submit(form.questions, OutcomeKind.CONSULTATION_VALIDATION_FAILED, dry_run_kind)

    async def _select_patient(self, record: InputRecord) -> bool:
        form = self.consultation_form
        self.logger.info(f"-- Patient: {record.search_name}")
        await self.driver.type_label(form.patient_label, record.search_name)

        self.logger.info("-- Waiting for patient suggestions...")
        match = form.patient_match(record.dob)
        if not await self.driver.wait_visible(match, self.timeouts.suggestion_popup):
            self.logger.info(f"-- No suggestion for {record.search_name} with DOB {record.dob}")
            return False

        await self.driver.click_selector(match, self.timeouts.clickable)
        self.logger.info("-- Patient selected")
        return True

    async def _fill_consultation_details(self, record: InputRecord) -> None:
        form = self.consultation_form
        driver = self.driver

        self.logger.info(f"-- Staff: {record.staff_name} ({record.staff_role})")
        await driver.fill_label(form.staff_name_label, record.staff_name)
        await driver.select_role("combobox", form.staff_role_label, record.staff_role)

        self.logger.info(f"-- Symptom: {record.symptom}")
        await driver.select_role("combobox", form.symptom_label, record.symptom)

        self.logger.info(f"-- Select: {form.supplied_label}")
        await driver.click_label(form.supplied_label)

        levy_status = record.levy_status or self.site.levy_status_default
        self.logger.info(f"-- Levy Status: {levy_status}")
        await driver.select_role("combobox", form.levy_status_label, levy_status)

    async def _select_medication(self, record: InputRecord) -> bool:
        form = self.consultation_form
        self.logger.info(f"-- Medication: {record.search_medication}")
        await self.driver.type_label(form.medication_label, record.search_medication)

        self.logger.info("-- Waiting for medication popup...")
        if not await self.driver.wait_visible(form.medication_popup, self.timeouts.suggestion_popup):
            self.logger.info(f"-- No medication suggestions for {record.search_medication}")
            return False
        if not await self.driver.wait_clickable(form.first_medication, self.timeouts.clickable):
            self.logger.info(f"-- No selectable medication for {record.search_medication}")
            return False

        await self.driver.click_selector(form.first_medication, self.timeouts.clickable)
        self.logger.info("-- Medication selected")
        return True

    async def _quantity_rejected(self, record: InputRecord) -> bool:
        form = self.consultation_form
        self.logger.info(f"-- Quantity: {record.quantity}")
        await self.driver.type_role("textbox", form.quantity_label, record.quantity)
        await self.driver.press("Tab")

        if await self.driver.wait_visible(form.quantity_error, self.timeouts.quantity_error):
            self.logger.info(f"-- Quantity {record.quantity} rejected by the form")
            return True
        return False

    # Registration

    async def register_patient(self, record: InputRecord) -> SubmissionResult:
        form = self.registration_form
        driver = self.driver

        self.logger.info("-- Opening registration form")
        await self._open(self.site.registration_url)

        self.logger.info(f"-- Date: {record.date}")
        await driver.fill_label(form.date_label, record.date)
        await driver.dismiss_transient(DATE_PICKER_SELECTOR, self.timeouts.transient_picker)

        self.logger.info(f"-- Name: {record.full_name}")
        await driver.fill_label(form.first_name_label, record.first_name)
        await driver.fill_label(form.last_name_label, record.last_name)

        self.logger.info(f"-- DOB: {record.dob}")
        await driver.fill_label(form.dob_label, record.dob)
        await driver.dismiss_transient(DATE_PICKER_SELECTOR, self.timeouts.transient_picker)

        gender = gender_choice(record.gender)
        self.logger.info(f"-- Gender: {gender}")
        await driver.click_label(gender)

        self.logger.info(f"-- Ethnicity: {self.site.ethnicity}")
        await driver.select_role("combobox", form.ethnicity_label, self.site.ethnicity)

        self.logger.info(f"-- Postcode: {record.postcode}")
        await driver.fill_label(form.postcode_label, record.postcode)
        await driver.fill_label(form.address_label, record.address)

        await driver.click_label(form.consent_label)

        self.logger.info(f"-- GP Practice: {record.practice}")
        await driver.type_label(form.practice_label, record.practice)
        # no fallback here: if the popup never shows, the click below times out
        await driver.wait_visible(form.practice_popup, self.timeouts.suggestion_popup)
        await driver.click_selector(form.first_practice, self.timeouts.clickable)

        return await self._submit(form.questions, OutcomeKind.REGISTRATION_VALIDATION_FAILED, OutcomeKind.SUCCESS)

    # Shared steps

    async def _open(self, url: str) -> None:
        await self.driver.goto(url)
        await handle_secondary_auth(self.driver, self.context.secret, self.site.secondary_auth_marker)

    async def _submit(self, questions: Sequence[str], failure_kind: OutcomeKind,
                      dry_run_kind: OutcomeKind) -> SubmissionResult:
        """Submit the open form and classify the result"""
        if self.context.pause_before_submit:
            await self.driver.pause()

        if self.context.dry_run:
            self.logger.info("-- Dry run, form not submitted")
            return SubmissionResult(dry_run_kind)

        self.logger.info("-- Submitting...")
        await self.driver.submit(SUBMIT_SELECTOR)
        await handle_secondary_auth(self.driver, self.context.secret, self.site.secondary_auth_marker)

        location = self.driver.current_location()
        self.logger.debug(f"-- Landed on {location}")
        if challenge_present(location, self.site.secondary_auth_marker):
            self.logger.warning("-- Still on the secret-word challenge, submission not confirmed")
            return SubmissionResult.failure(OutcomeKind.UNEXPECTED_ERROR,
                                            "secret-word challenge was not accepted")
        if self._failed_location.search(location):
            self.logger.info("-- Submission rejected, compiling errors:")
            details = await extract_form_errors(self.driver, questions)
            return SubmissionResult.failure(failure_kind, details)

        self.logger.info("-- Submitted")
        return SubmissionResult.success()
