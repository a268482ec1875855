from unittest.mock import MagicMock

import pytest
from conftest import TZ

from shift_sync import browser
from shift_sync.config import Settings

LOGIN_URL = "https://roster.example.com/login"


def _settings(tmp_path):
    return Settings(
        roster_login="me@example.com",
        roster_password="secret",
        login_url=LOGIN_URL,
        home_url="https://roster.example.com/home",
        schedule_url="https://roster.example.com/api/shifts",
        calendar_id="primary",
        timezone=TZ,
        google_client_secrets="credentials.json",
        google_token_file="token.json",
        storage_state_path=str(tmp_path / "state.json"),
    )


@pytest.fixture
def session(monkeypatch):
    playwright, chromium, context = MagicMock(), MagicMock(), MagicMock()
    page = context.new_page.return_value
    monkeypatch.setattr(browser, "create_context", lambda settings, headful=False: (playwright, chromium, context))
    return playwright, chromium, context, page


def test_stored_session_skips_login_form(session, tmp_path):
    playwright, chromium, context, page = session
    page.url = "https://roster.example.com/home"

    result = browser.ensure_login(_settings(tmp_path))

    assert result == (playwright, chromium, context, page)
    page.fill.assert_not_called()
    context.storage_state.assert_called_once_with(path=str(tmp_path / "state.json"))
    context.close.assert_not_called()


def test_login_stuck_on_form_saves_state_and_closes(session, tmp_path):
    playwright, chromium, context, page = session
    page.url = LOGIN_URL
    page.query_selector.return_value = MagicMock()

    with pytest.raises(RuntimeError):
        browser.ensure_login(_settings(tmp_path))

    page.fill.assert_any_call("input[name*='email' i]", "me@example.com")
    context.storage_state.assert_called_once_with(path=str(tmp_path / "state.json"))
    context.close.assert_called_once()
    chromium.close.assert_called_once()
    playwright.stop.assert_called_once()


def test_navigation_failure_closes_browser(session, tmp_path):
    playwright, chromium, context, page = session
    page.url = "https://roster.example.com/home"
    page.goto.side_effect = [None, TimeoutError("networkidle")]

    with pytest.raises(TimeoutError):
        browser.ensure_login(_settings(tmp_path))

    context.close.assert_called_once()
    playwright.stop.assert_called_once()
