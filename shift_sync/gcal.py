from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Callable, List

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import Settings
from .errors import FetchError, WriteError
from .models import MANAGED_BY_KEY, CalendarEvent

SCOPES = ["https://www.googleapis.com/auth/calendar.events.owned"]

CLIENT_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


def _load_credentials(client_secrets_file: str, token_file: str) -> Credentials:
    creds = None
    if token_file:
        try:
            creds = Credentials.from_authorized_user_file(token_file, SCOPES)
        except Exception:
            creds = None
    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            flow = InstalledAppFlow.from_client_secrets_file(client_secrets_file, SCOPES)
            creds = flow.run_local_server(port=0)
        with open(token_file, "w") as token:
            token.write(creds.to_json())
    return creds


class GoogleCalendar:
    """Calendar client holding one API service per thread."""

    def __init__(self, service_factory: Callable[[], object], calendar_id: str) -> None:
        self._service_factory = service_factory
        self.calendar_id = calendar_id
        self._local = threading.local()

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleCalendar":
        creds = _load_credentials(settings.google_client_secrets, settings.google_token_file)
        return cls(lambda: build("calendar", "v3", credentials=creds, cache_discovery=False), settings.calendar_id)

    def _events(self):
        service = getattr(self._local, "service", None)
        if service is None:
            service = self._service_factory()
            self._local.service = service
        return service.events()

    def list_events(self, sync_tag: str, min_start: dt.datetime) -> List[CalendarEvent]:
        logging.info("Fetching managed events starting from %s", min_start)
        events: List[CalendarEvent] = []
        page_token = None
        try:
            while True:
                events_result = (
                    self._events()
                    .list(
                        calendarId=self.calendar_id,
                        privateExtendedProperty=f"{MANAGED_BY_KEY}={sync_tag}",
                        timeMin=min_start.isoformat(),
                        singleEvents=True,
                        showDeleted=False,
                        maxResults=2500,
                        pageToken=page_token,
                    )
                    .execute()
                )
                for item in events_result.get("items", []):
                    event = CalendarEvent.from_gcal(item)
                    # timeMin bounds the end time, so in-progress events still come back.
                    if event.sync_tag != sync_tag or not event.active:
                        continue
                    if event.start is None or event.start < min_start:
                        continue
                    events.append(event)
                page_token = events_result.get("nextPageToken")
                if not page_token:
                    break
        except CLIENT_ERRORS as exc:
            raise FetchError(f"Listing calendar {self.calendar_id} failed: {exc}") from exc
        logging.info("Found %d existing managed events", len(events))
        return events

    def create(self, draft: dict) -> CalendarEvent:
        try:
            item = self._events().insert(calendarId=self.calendar_id, body=draft).execute()
        except CLIENT_ERRORS as exc:
            raise WriteError("create", None, str(exc)) from exc
        return CalendarEvent.from_gcal(item)

    def update(self, event_id: str, draft: dict) -> CalendarEvent:
        try:
            item = self._events().update(calendarId=self.calendar_id, eventId=event_id, body=draft).execute()
        except CLIENT_ERRORS as exc:
            raise WriteError("update", event_id, str(exc)) from exc
        return CalendarEvent.from_gcal(item)

    def set_status(self, event_id: str, status: str) -> CalendarEvent:
        try:
            item = (
                self._events()
                .patch(calendarId=self.calendar_id, eventId=event_id, body={"status": status})
                .execute()
            )
        except CLIENT_ERRORS as exc:
            raise WriteError("set_status", event_id, str(exc)) from exc
        return CalendarEvent.from_gcal(item)
