from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

DEFAULT_TIMEZONE = "Australia/Adelaide"


@dataclass
class Settings:
    roster_login: str
    roster_password: str
    login_url: str
    home_url: str
    schedule_url: str
    calendar_id: str
    timezone: ZoneInfo
    google_client_secrets: str
    google_token_file: str
    storage_state_path: str = "storage_state.json"
    sync_tag: str = "shift_sync"
    sync_interval_mins: int = 10
    weeks_ahead: int = 4
    max_workers: int = 4
    event_location: Optional[str] = None


def get_timezone() -> ZoneInfo:
    tz_name = os.getenv("TIMEZONE", DEFAULT_TIMEZONE)
    try:
        return ZoneInfo(tz_name)
    except Exception:  # pragma: no cover
        logging.warning("Invalid TIMEZONE %s, falling back to %s", tz_name, DEFAULT_TIMEZONE)
        return ZoneInfo(DEFAULT_TIMEZONE)


def get_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logging.warning("Invalid %s %r, falling back to %d", name, raw, default)
        return default
    if value < minimum:
        logging.warning("%s must be at least %d, falling back to %d", name, minimum, default)
        return default
    return value


def get_settings() -> Settings:
    timezone = get_timezone()
    settings = Settings(
        roster_login=os.getenv("ROSTER_LOGIN", ""),
        roster_password=os.getenv("ROSTER_PASSWORD", ""),
        login_url=os.getenv("ROSTER_LOGIN_URL", ""),
        home_url=os.getenv("ROSTER_HOME_URL", ""),
        schedule_url=os.getenv("ROSTER_SCHEDULE_URL", ""),
        calendar_id=os.getenv("CALENDAR_ID", "primary"),
        timezone=timezone,
        google_client_secrets=os.getenv("GOOGLE_CLIENT_SECRETS", "credentials.json"),
        google_token_file=os.getenv("GOOGLE_TOKEN_FILE", "token.json"),
        storage_state_path=os.getenv("STORAGE_STATE_PATH", "storage_state.json"),
        sync_tag=os.getenv("SYNC_TAG", "shift_sync") or "shift_sync",
        sync_interval_mins=get_int("SYNC_INTERVAL_MINS", 10),
        weeks_ahead=get_int("WEEKS_AHEAD", 4),
        max_workers=get_int("MAX_WORKERS", 4),
        event_location=os.getenv("EVENT_LOCATION") or None,
    )
    if not settings.roster_login:
        logging.warning("ROSTER_LOGIN is not set")
    if not settings.roster_password:
        logging.warning("ROSTER_PASSWORD is not set")
    if not settings.schedule_url:
        logging.warning("ROSTER_SCHEDULE_URL is not set")
    return settings


def daterange_weeks(start: date, weeks: int) -> list[tuple[date, date]]:
    windows: list[tuple[date, date]] = []
    for i in range(weeks):
        from_date = start + timedelta(days=7 * i)
        to_date = from_date + timedelta(days=6)
        windows.append((from_date, to_date))
    return windows
