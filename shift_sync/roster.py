"""Roster portal client.

Logs in through a real browser session and reads shifts from the portal's
JSON schedule endpoint, one week per request. The payload layout differs
between portal versions, so shift records are located anywhere in the JSON
by looking for an id alongside start/end fields.
"""
from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, List, Optional
from zoneinfo import ZoneInfo

from playwright.sync_api import Error as PlaywrightError

from .browser import ensure_login
from .config import Settings, daterange_weeks
from .errors import FetchError, SessionExpired
from .models import Shift
from .utils import build_datetime, parse_instant

ID_KEYS = ["guid", "shiftGuid", "shiftId", "shift_id", "id"]
ROLE_KEYS = ["role", "roleName", "position", "title", "name"]
LOCATION_KEYS = ["location", "locationName", "site", "workplace"]
DEPARTMENT_KEYS = ["department", "departmentName", "team"]
START_KEYS = ["startTime", "start", "startDateTime", "begin"]
END_KEYS = ["endTime", "end", "endDateTime", "finish"]
DATE_KEYS = ["date", "day", "shiftDate"]

TIME_ONLY = re.compile(r"^\d{1,2}:\d{2}$")


def pick(d: dict, names: list[str]) -> Any:
    for n in names:
        if n in d and d[n] not in (None, ""):
            return d[n]
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        value = pick(value, ["name", "title", "description"])
    text = str(value).strip() if value is not None else ""
    return text or None


def _instant(value: Any, day: Any, tz: ZoneInfo) -> Optional[dt.datetime]:
    if isinstance(value, str) and TIME_ONLY.match(value.strip()) and isinstance(day, str):
        try:
            return build_datetime(dt.date.fromisoformat(day[:10]), value.strip(), tz)
        except ValueError:
            return None
    return parse_instant(value, tz)


def parse_shifts(payload: Any, tz: ZoneInfo) -> List[Shift]:
    """Find shift records in a roster JSON payload."""
    out: List[Shift] = []

    def walk(x: Any, ctx_date: Any = None) -> None:
        if isinstance(x, dict):
            day = pick(x, DATE_KEYS) or ctx_date
            shift_id = pick(x, ID_KEYS)
            start = pick(x, START_KEYS)
            end = pick(x, END_KEYS)
            if shift_id is not None and (start is not None or end is not None):
                out.append(
                    Shift(
                        shift_id=str(shift_id).strip(),
                        role=_text(pick(x, ROLE_KEYS)) or "",
                        location=_text(pick(x, LOCATION_KEYS)),
                        start=_instant(start, day, tz),
                        end=_instant(end, day, tz),
                        department=_text(pick(x, DEPARTMENT_KEYS)),
                        raw=x,
                    )
                )
                return
            for v in x.values():
                walk(v, ctx_date=day)
        elif isinstance(x, list):
            for v in x:
                walk(v, ctx_date=ctx_date)

    walk(payload)
    return out


class RosterClient:
    def __init__(self, settings: Settings, headful: bool = False) -> None:
        self.settings = settings
        self.headful = headful
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    def login(self) -> None:
        self.close()
        self._playwright, self._browser, self._context, self._page = ensure_login(self.settings, headful=self.headful)

    def close(self) -> None:
        if self._context is not None:
            try:
                self._context.storage_state(path=self.settings.storage_state_path)
                self._context.close()
                self._browser.close()
                self._playwright.stop()
            except PlaywrightError as exc:
                logging.warning("Error while closing browser: %s", exc)
        self._playwright = self._browser = self._context = self._page = None

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        cookies = self._context.cookies(self.settings.schedule_url)
        access = next((c["value"] for c in cookies if c["name"].upper() == "ACCESS_TOKEN"), None)
        if access:
            headers["Authorization"] = f"Bearer {access}"
        return headers

    def _redirected_to_login(self, url: str) -> bool:
        return bool(self.settings.login_url) and url.startswith(self.settings.login_url)

    def test_session(self) -> bool:
        if self._page is None:
            return False
        probe_url = self.settings.home_url or self.settings.schedule_url
        try:
            resp = self._page.request.get(probe_url, headers=self._headers())
        except PlaywrightError as exc:
            logging.warning("Session probe failed: %s", exc)
            return False
        return resp.ok and not self._redirected_to_login(resp.url)

    def list_shifts(self, from_instant: dt.datetime) -> List[Shift]:
        if self._page is None:
            raise SessionExpired("Not logged in to roster portal")
        start_date = from_instant.astimezone(self.settings.timezone).date()
        shifts: List[Shift] = []
        seen: dict[str, Shift] = {}
        for from_date, to_date in daterange_weeks(start_date, self.settings.weeks_ahead):
            url = f"{self.settings.schedule_url}?from={from_date.isoformat()}&to={to_date.isoformat()}"
            logging.info("Fetching roster %s", url)
            try:
                resp = self._page.request.get(url, headers=self._headers())
                if resp.status in (401, 403) or self._redirected_to_login(resp.url):
                    raise SessionExpired(f"Roster portal rejected session ({resp.status})")
                if not resp.ok:
                    raise FetchError(f"Roster request {url} failed with status {resp.status}")
                payload = resp.json()
            except PlaywrightError as exc:
                raise FetchError(f"Roster request {url} failed: {exc}") from exc
            except ValueError as exc:
                raise FetchError(f"Roster response for {url} is not JSON: {exc}") from exc
            week = parse_shifts(payload, self.settings.timezone)
            logging.info("Parsed %d shifts for %s - %s", len(week), from_date, to_date)
            for shift in week:
                # Overnight shifts can be listed in two adjacent weeks.
                if seen.get(shift.shift_id) == shift:
                    continue
                seen.setdefault(shift.shift_id, shift)
                shifts.append(shift)
        return shifts
