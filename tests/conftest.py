from __future__ import annotations

import datetime as dt
import itertools
from zoneinfo import ZoneInfo

import pytest

from shift_sync.errors import WriteError
from shift_sync.models import STATUS_CANCELLED, CalendarEvent, Shift
from shift_sync.translator import to_event_draft

TZ = ZoneInfo("Australia/Adelaide")
NOW = dt.datetime(2026, 10, 18, 9, 0, tzinfo=TZ)
TAG = "shift_sync"


def make_shift(shift_id="S1", role="Barista", location="Terminal 1", days=1, hours=(9, 17), **kwargs) -> Shift:
    day = NOW.date() + dt.timedelta(days=days)
    start = dt.datetime.combine(day, dt.time(hours[0]), tzinfo=TZ)
    end = dt.datetime.combine(day, dt.time(hours[1]), tzinfo=TZ)
    return Shift(
        shift_id=shift_id,
        role=role,
        location=location,
        start=kwargs.pop("start", start),
        end=kwargs.pop("end", end),
        **kwargs,
    )


def event_from_shift(shift: Shift, event_id: str = "G1", color_id=None) -> CalendarEvent:
    body = to_event_draft(shift, TAG, TZ, color_id=color_id)
    return CalendarEvent.from_gcal(dict(body, id=event_id, status="confirmed"))


class FakeSource:
    def __init__(self, shifts=None, valid=True):
        self.shifts = list(shifts or [])
        self.valid = valid
        self.error = None
        self.logins = 0
        self.probes = 0

    def list_shifts(self, from_instant):
        if self.error:
            raise self.error
        return list(self.shifts)

    def test_session(self):
        self.probes += 1
        return self.valid

    def login(self):
        self.logins += 1
        self.valid = True


class FakeCalendar:
    def __init__(self, events=None):
        self.events = {e.event_id: e for e in (events or [])}
        self.ids = itertools.count(100)
        self.fail_ids = set()
        self.fail_create = False
        self.error = None
        self.calls = []

    def list_events(self, sync_tag, min_start):
        if self.error:
            raise self.error
        return [
            e
            for e in self.events.values()
            if e.active and e.sync_tag == sync_tag and e.start is not None and e.start >= min_start
        ]

    def create(self, draft):
        self.calls.append(("create", None))
        if self.fail_create:
            raise WriteError("create", None, "rejected")
        event = CalendarEvent.from_gcal(dict(draft, id=f"G{next(self.ids)}", status="confirmed"))
        self.events[event.event_id] = event
        return event

    def update(self, event_id, draft):
        self.calls.append(("update", event_id))
        if event_id in self.fail_ids:
            raise WriteError("update", event_id, "rejected")
        event = CalendarEvent.from_gcal(dict(draft, id=event_id, status="confirmed"))
        self.events[event_id] = event
        return event

    def set_status(self, event_id, status):
        self.calls.append(("set_status", event_id))
        if event_id in self.fail_ids:
            raise WriteError("set_status", event_id, "rejected")
        event = self.events[event_id]
        event.status = status
        return event

    @property
    def cancelled(self):
        return [e.event_id for e in self.events.values() if e.status == STATUS_CANCELLED]


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def calendar():
    return FakeCalendar()
