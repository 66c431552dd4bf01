"""
session_manager.py

Launches the browser and establishes one authenticated PharmOutcomes session:
login, pharmacy selection and the secret-word challenge.
"""

import logging
from contextlib import asynccontextmanager

from playwright.async_api import async_playwright

from config_manager import CredentialsConfig, EntryAutomationConfig, SiteConfig
from form_driver import PlaywrightFormDriver
from secondary_auth import handle_secondary_auth

logger = logging.getLogger(__name__)

LOGIN_NAME_SELECTOR = "#login-form-elements input[name=login_name]"
LOGIN_PASSWORD_SELECTOR = "#login-form-elements input[name=login_pwd]"
LOGIN_SUBMIT_SELECTOR = "#login-form-elements input[type=submit]"


async def login(driver, site: SiteConfig, credentials: CredentialsConfig) -> None:
    """
    Log in, choose the pharmacy and answer the secret-word challenge.

    Raises Playwright's TimeoutError if the login page or pharmacy link never appear.
    """
    logger.info(f"🌐 Navigating to {site.login_url}")
    await driver.goto(site.login_url)

    await driver.fill_selector(LOGIN_NAME_SELECTOR, credentials.user_login)
    await driver.fill_selector(LOGIN_PASSWORD_SELECTOR, credentials.password)
    await driver.click_selector(LOGIN_SUBMIT_SELECTOR, driver.timeouts.navigation)
    logger.info("🔓 Credentials submitted")

    logger.info(f"🏥 Choosing pharmacy: {site.pharmacy_link_name}")
    await driver.click_role("link", site.pharmacy_link_name)

    await driver.goto(site.consultation_url)
    if await handle_secondary_auth(driver, credentials.secret, site.secondary_auth_marker):
        logger.info("🔐 Secret word accepted")
    logger.info("✅ Session established")


@asynccontextmanager
async def open_session(config: EntryAutomationConfig):
    """Yield a PlaywrightFormDriver bound to a logged-in page; the browser is always closed"""
    mode = config.automation_mode
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=mode.headless, slow_mo=mode.slow_motion)
        try:
            context = await browser.new_context()
            page = await context.new_page()
            page.set_default_timeout(mode.timeout)

            driver = PlaywrightFormDriver(page, config.timeouts)
            await login(driver, config.site, config.credentials)
            yield driver
        finally:
            await browser.close()
            logger.info("🛑 Browser closed")
