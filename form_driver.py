"""
form_driver.py

Thin Playwright adapter used by the workflow controller. It locates controls by
label, role or CSS selector, fills and clicks them, and performs bounded waits.
Wait helpers report an elapsed bound as False instead of raising; plain actions
let Playwright's TimeoutError propagate.
"""

import logging
from typing import List, Optional

from playwright.async_api import Page, TimeoutError as PWTimeoutError

from config_manager import TimeoutConfig

logger = logging.getLogger(__name__)


class PlaywrightFormDriver:
    """Form-filling operations over a single Playwright page"""

    def __init__(self, page: Page, timeouts: Optional[TimeoutConfig] = None):
        self.page = page
        self.timeouts = timeouts or TimeoutConfig()
        self.logger = logging.getLogger(f"{__name__}.PlaywrightFormDriver")

    # Navigation

    async def goto(self, url: str) -> None:
        self.logger.debug(f"Navigating to {url}")
        await self.page.goto(url, timeout=self.timeouts.navigation)

    def current_location(self) -> str:
        return self.page.url

    async def submit(self, selector: str) -> str:
        """Click the submit control, wait for the resulting navigation and return the new location"""
        return await self._click_and_wait(self.page.locator(selector))

    async def submit_role(self, role: str, name: str, exact: bool = True) -> str:
        return await self._click_and_wait(self.page.get_by_role(role, name=name, exact=exact))

    async def _click_and_wait(self, locator) -> str:
        async with self.page.expect_navigation(wait_until="domcontentloaded",
                                               timeout=self.timeouts.navigation):
            await locator.click()
        self.logger.debug(f"Submitted, now at {self.page.url}")
        return self.page.url

    # Filling

    async def fill_label(self, label: str, text: str, exact: bool = True) -> None:
        await self.page.get_by_label(label, exact=exact).fill(text)

    async def type_label(self, label: str, text: str, exact: bool = True) -> None:
        """Replace the field's content by typing, so autocomplete handlers fire"""
        await self.page.get_by_label(label, exact=exact).click()
        await self._retype(text)

    async def type_role(self, role: str, name: str, text: str) -> None:
        await self.page.get_by_role(role, name=name).click()
        await self._retype(text)

    async def _retype(self, text: str) -> None:
        await self.page.keyboard.press("Control+a")
        await self.page.keyboard.type(text, delay=self.timeouts.type_delay)

    async def fill_selector(self, selector: str, text: str) -> None:
        await self.page.locator(selector).fill(text)

    async def fill_nth(self, selector: str, index: int, text: str) -> None:
        await self.page.locator(selector).nth(index).fill(text)

    async def select_role(self, role: str, name: str, option: str) -> None:
        await self.page.get_by_role(role, name=name).select_option(option)

    async def press(self, key: str) -> None:
        await self.page.keyboard.press(key)

    # Clicking

    async def click_label(self, label: str, exact: bool = True) -> None:
        await self.page.get_by_label(label, exact=exact).click()

    async def click_role(self, role: str, name: str, exact: bool = True) -> None:
        await self.page.get_by_role(role, name=name, exact=exact).click()

    async def click_selector(self, selector: str, timeout: Optional[int] = None) -> None:
        await self.page.locator(selector).first.click(timeout=timeout or self.timeouts.clickable)

    # Bounded waits

    async def wait_visible(self, selector: str, timeout_ms: int) -> bool:
        """True if the first match of selector becomes visible within timeout_ms"""
        try:
            await self.page.locator(selector).first.wait_for(state="visible", timeout=timeout_ms)
            return True
        except PWTimeoutError:
            self.logger.debug(f"Not visible after {timeout_ms}ms: {selector}")
            return False

    async def wait_clickable(self, selector: str, timeout_ms: int) -> bool:
        """True if the first match of selector could be clicked within timeout_ms (trial click)"""
        try:
            await self.page.locator(selector).first.click(timeout=timeout_ms, trial=True)
            return True
        except PWTimeoutError:
            self.logger.debug(f"Not clickable after {timeout_ms}ms: {selector}")
            return False

    async def dismiss_transient(self, selector: str, timeout_ms: int) -> bool:
        """Close a picker that may or may not still be open; True if one was closed"""
        if await self.wait_visible(selector, timeout_ms):
            await self.page.keyboard.press("Escape")
            return True
        return False

    # Reading

    async def attribute_values(self, selector: str, attribute: str) -> List[str]:
        values = []
        for element in await self.page.locator(selector).all():
            values.append(await element.get_attribute(attribute) or "")
        return values

    async def question_errors(self, question_selector: str, error_selector: str) -> List[Optional[str]]:
        """Visible inline error text of each question region, in on-screen order"""
        errors: List[Optional[str]] = []
        for question in await self.page.locator(question_selector).all():
            error = question.locator(error_selector).first
            if await error.count() and await error.is_visible():
                errors.append(await error.inner_text())
            else:
                errors.append(None)
        return errors

    async def pause(self) -> None:
        """Suspend until resumed from the Playwright inspector"""
        self.logger.info("Paused, resume from the Playwright inspector to continue")
        await self.page.pause()
