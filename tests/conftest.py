"""
Shared pytest configuration and fixtures.

FakeFormDriver stands in for PlaywrightFormDriver: it records every action and
answers waits and submissions from scripted values, so workflow tests run
without a browser.
"""

from collections import deque
from typing import List, Optional

import pytest

from config_manager import SiteConfig, TimeoutConfig
from entry_workflow import EntryWorkflowController
from form_layout import ConsultationForm, RegistrationForm
from records import InputRecord
from run_context import RunContext

ACCEPTED_LOCATION = "https://pharmoutcomes.org/pharmoutcomes/services/view?id=1&xact=saved"
REJECTED_LOCATION = "https://pharmoutcomes.org/pharmoutcomes/services/enter?id=1&xact=provisionnew"
CHALLENGE_LOCATION = "https://pharmoutcomes.org/pharmoutcomes/passcode?enter"
SECRET = "wombat"


class FakeFormDriver:
    """
    Scripted form driver.

    patient_found is consumed one value per patient search; the last value
    repeats once the sequence runs out. submit_locations is consumed one value
    per submit; once empty every submit lands on ACCEPTED_LOCATION.
    challenge_sticks keeps the page on the secret-word challenge after its
    Submit, as when the letters are rejected.
    """

    ACCEPTED_LOCATION = ACCEPTED_LOCATION
    REJECTED_LOCATION = REJECTED_LOCATION
    CHALLENGE_LOCATION = CHALLENGE_LOCATION

    def __init__(self, patient_found=(True,), medication_popup: bool = True,
                 medication_clickable: bool = True, quantity_error: bool = False,
                 submit_locations=(), question_errors: Optional[List[Optional[str]]] = None,
                 secret_field_names=(), location: str = "about:blank",
                 raise_on_click: Optional[str] = None, challenge_sticks: bool = False):
        self.timeouts = TimeoutConfig()
        self.location = location
        self.actions = []
        self._patient_found = deque(patient_found)
        self._last_patient_found = patient_found[-1] if patient_found else False
        self.medication_popup = medication_popup
        self.medication_clickable = medication_clickable
        self.quantity_error = quantity_error
        self._submit_locations = deque(submit_locations)
        self.errors = question_errors or []
        self.secret_field_names = list(secret_field_names)
        self.raise_on_click = raise_on_click
        self.challenge_sticks = challenge_sticks
        self._consultation = ConsultationForm()
        self._registration = RegistrationForm()

    # helpers for assertions

    def calls(self, name: str) -> list:
        return [action for action in self.actions if action[0] == name]

    def visits(self, url: str) -> int:
        return sum(1 for action in self.calls("goto") if action[1] == url)

    @property
    def submit_count(self) -> int:
        return len(self.calls("submit"))

    # driver interface

    async def goto(self, url):
        self.actions.append(("goto", url))
        self.location = url

    def current_location(self):
        return self.location

    async def submit(self, selector):
        self.actions.append(("submit", selector))
        self.location = self._submit_locations.popleft() if self._submit_locations else ACCEPTED_LOCATION
        return self.location

    async def fill_label(self, label, text, exact=True):
        self.actions.append(("fill_label", label, text))

    async def type_label(self, label, text, exact=True):
        self.actions.append(("type_label", label, text))

    async def type_role(self, role, name, text):
        self.actions.append(("type_role", role, name, text))

    async def fill_selector(self, selector, text):
        self.actions.append(("fill_selector", selector, text))

    async def fill_nth(self, selector, index, text):
        self.actions.append(("fill_nth", selector, index, text))

    async def select_role(self, role, name, option):
        self.actions.append(("select_role", role, name, option))

    async def press(self, key):
        self.actions.append(("press", key))

    async def click_label(self, label, exact=True):
        self.actions.append(("click_label", label))

    async def click_role(self, role, name, exact=True):
        self.actions.append(("click_role", role, name))

    async def submit_role(self, role, name, exact=True):
        self.actions.append(("submit_role", role, name))
        if self.location == CHALLENGE_LOCATION and not self.challenge_sticks:
            self.location = ACCEPTED_LOCATION
        return self.location

    async def click_selector(self, selector, timeout=None):
        self.actions.append(("click_selector", selector))
        if self.raise_on_click and self.raise_on_click in selector:
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def wait_visible(self, selector, timeout_ms):
        self.actions.append(("wait_visible", selector))
        if selector.startswith(self._consultation.patient_popup):
            if self._patient_found:
                return self._patient_found.popleft()
            return self._last_patient_found
        if selector == self._consultation.medication_popup:
            return self.medication_popup
        if selector == self._consultation.quantity_error:
            return self.quantity_error
        if selector == self._registration.practice_popup:
            return True
        return False

    async def wait_clickable(self, selector, timeout_ms):
        self.actions.append(("wait_clickable", selector))
        return self.medication_clickable

    async def dismiss_transient(self, selector, timeout_ms):
        self.actions.append(("dismiss_transient", selector))
        return False

    async def attribute_values(self, selector, attribute):
        return list(self.secret_field_names)

    async def question_errors(self, question_selector, error_selector):
        return list(self.errors)

    async def pause(self):
        self.actions.append(("pause",))


@pytest.fixture
def site() -> SiteConfig:
    return SiteConfig()


@pytest.fixture
def record() -> InputRecord:
    return InputRecord.from_row({
        'searchName': 'Smith, Jane',
        'date': '01/03/2024',
        'dob': '12/05/1980',
        'staffName': 'A Pharmacist',
        'staffRole': 'Pharmacist',
        'symptom': 'Hay fever',
        'levyStatus': '',
        'searchMedication': 'Cetirizine',
        'quantity': '30',
        'firstName': 'Jane',
        'lastName': 'Smith',
        'gender': 'Female',
        'postcode': 'ST15 8AA',
        'address': '1 High Street, Stone',
        'practice': 'Stone Medical Centre',
    })


@pytest.fixture
def make_driver():
    """Factory for scripted drivers"""
    return FakeFormDriver


@pytest.fixture
def make_controller(site):
    """Build a controller around a driver with the given run flags"""
    def _make(driver, dry_run=False, pause_before_submit=False):
        context = RunContext(driver=driver, secret=SECRET, timestamp="2024-03-01_09-00-00",
                             dry_run=dry_run, pause_before_submit=pause_before_submit)
        return EntryWorkflowController(context, site, driver.timeouts)
    return _make


ENV_KEYS = [
    "PHARMOUTCOMES_USER_LOGIN", "PHARMOUTCOMES_PASSWORD", "PHARMOUTCOMES_SECRET",
    "INPUT_FILE", "OUTPUT_DIR", "DRY_RUN", "PAUSE_BEFORE_SUBMIT",
    "AUTOMATION_HEADLESS", "AUTOMATION_SLOW_MOTION", "AUTOMATION_TIMEOUT",
    "AUTOMATION_LOG_LEVEL", "AUTOMATION_PERFORMANCE_MONITORING",
    "PHARMOUTCOMES_LOGIN_URL", "PHARMOUTCOMES_CONSULTATION_URL",
    "PHARMOUTCOMES_REGISTRATION_URL", "PHARMOUTCOMES_PHARMACY",
]


@pytest.fixture
def clean_env(monkeypatch):
    """No configuration in the environment"""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def full_env(clean_env):
    """Every required setting present"""
    clean_env.setenv("PHARMOUTCOMES_USER_LOGIN", "stone.user")
    clean_env.setenv("PHARMOUTCOMES_PASSWORD", "hunter2")
    clean_env.setenv("PHARMOUTCOMES_SECRET", SECRET)
    clean_env.setenv("INPUT_FILE", "inputs/records.csv")
    clean_env.setenv("OUTPUT_DIR", "outputs")
    return clean_env
