import datetime as dt
from unittest.mock import MagicMock

import httplib2
import pytest
from conftest import NOW, TAG, TZ, make_shift
from googleapiclient.errors import HttpError

from shift_sync.errors import FetchError, WriteError
from shift_sync.gcal import GoogleCalendar
from shift_sync.translator import to_event_draft


def _item(event_id, shift, **extra):
    return {**to_event_draft(shift, TAG, TZ), "id": event_id, "status": "confirmed", **extra}


def _http_error(status=403):
    return HttpError(httplib2.Response({"status": status}), b'{"error": {"message": "forbidden"}}')


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def client(service):
    return GoogleCalendar(lambda: service, "cal-1")


def test_list_events_paginates_and_filters(client, service):
    in_progress = make_shift("RUNNING", days=0, hours=(8, 12))
    events = service.events.return_value
    events.list.return_value.execute.side_effect = [
        {"items": [_item("G1", make_shift("S1")), _item("G0", in_progress)], "nextPageToken": "p2"},
        {"items": [_item("G2", make_shift("S2", days=2)), _item("G3", make_shift("S3"), status="cancelled")]},
    ]

    result = client.list_events(TAG, NOW)

    assert [e.event_id for e in result] == ["G1", "G2"]
    first = events.list.call_args_list[0].kwargs
    assert first["calendarId"] == "cal-1"
    assert first["privateExtendedProperty"] == f"managed_by={TAG}"
    assert first["timeMin"] == NOW.isoformat()
    assert first["showDeleted"] is False
    assert events.list.call_args_list[1].kwargs["pageToken"] == "p2"


def test_list_events_error_is_fetch_error(client, service):
    service.events.return_value.list.return_value.execute.side_effect = _http_error(500)
    with pytest.raises(FetchError):
        client.list_events(TAG, NOW)


def test_create_returns_event(client, service):
    draft = to_event_draft(make_shift("S1"), TAG, TZ)
    service.events.return_value.insert.return_value.execute.return_value = dict(draft, id="G9")

    event = client.create(draft)

    assert event.event_id == "G9"
    assert event.shift_id == "S1"
    service.events.return_value.insert.assert_called_once_with(calendarId="cal-1", body=draft)


def test_update_error_is_write_error(client, service):
    service.events.return_value.update.return_value.execute.side_effect = _http_error()
    with pytest.raises(WriteError) as excinfo:
        client.update("G1", {})
    assert excinfo.value.event_id == "G1"
    assert excinfo.value.action == "update"


def test_set_status_patches_only_status(client, service):
    item = _item("G1", make_shift("S1"), colorId="2")
    service.events.return_value.patch.return_value.execute.return_value = dict(item, status="cancelled")

    event = client.set_status("G1", "cancelled")

    assert not event.active
    assert event.color_id == "2"
    service.events.return_value.patch.assert_called_once_with(
        calendarId="cal-1", eventId="G1", body={"status": "cancelled"}
    )


def test_all_day_event_start_is_parsed(client, service):
    day = (NOW + dt.timedelta(days=3)).date().isoformat()
    item = {
        "id": "A1",
        "start": {"date": day},
        "end": {"date": day},
        "extendedProperties": {"private": {"managed_by": TAG}},
    }
    service.events.return_value.list.return_value.execute.return_value = {"items": [item]}

    [event] = client.list_events(TAG, NOW)

    assert event.start.date().isoformat() == day
    assert event.shift_id is None


def test_transport_error_is_write_error(client, service):
    service.events.return_value.insert.return_value.execute.side_effect = httplib2.ServerNotFoundError("no dns")
    with pytest.raises(WriteError) as excinfo:
        client.create({})
    assert excinfo.value.action == "create"
