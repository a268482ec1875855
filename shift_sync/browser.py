from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from .config import Settings


def _find_first(page: Page, selectors: list[str]) -> Optional[str]:
    for selector in selectors:
        el = page.query_selector(selector)
        if el:
            return selector
    return None


def create_context(settings: Settings, headful: bool = False) -> Tuple[Playwright, Browser, BrowserContext]:
    playwright = sync_playwright().start()
    browser = playwright.chromium.launch(headless=not headful)
    storage_state = Path(settings.storage_state_path)
    context = browser.new_context(
        storage_state=str(storage_state) if storage_state.exists() else None,
        timezone_id=settings.timezone.key,
    )
    return playwright, browser, context


def on_login_page(page: Page, settings: Settings) -> bool:
    return bool(settings.login_url) and page.url.startswith(settings.login_url)


def ensure_login(settings: Settings, headful: bool = False) -> tuple[Playwright, Browser, BrowserContext, Page]:
    playwright, browser, context = create_context(settings, headful=headful)
    try:
        page = context.new_page()
        page.goto(settings.login_url)

        if on_login_page(page, settings):
            logging.info("Logging in to roster portal as %s...", settings.roster_login)
            login_selector = _find_first(
                page,
                [
                    "input[name*='email' i]",
                    "input[name*='user' i]",
                    "input[type='email']",
                    "input[type='text']",
                ],
            )
            password_selector = _find_first(page, ["input[type='password']"])
            if not login_selector or not password_selector:
                raise RuntimeError("Unable to locate login form fields")

            page.fill(login_selector, settings.roster_login)
            page.fill(password_selector, settings.roster_password)

            submit = page.query_selector("button[type='submit']")
            if submit:
                submit.click()
            else:
                page.press(password_selector, "Enter")

            page.wait_for_timeout(1000)
            page.wait_for_load_state("networkidle")

        page.goto(settings.home_url or settings.login_url, wait_until="networkidle")
        if on_login_page(page, settings):
            raise RuntimeError("Still on login page, captcha/2FA may be required")
    except Exception:
        logging.error("Roster login failed; manual intervention may be required")
        context.storage_state(path=settings.storage_state_path)
        context.close()
        browser.close()
        playwright.stop()
        raise

    logging.info("Login successful, session stored at %s", settings.storage_state_path)
    context.storage_state(path=settings.storage_state_path)
    return playwright, browser, context, page
