from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo

from .errors import TranslationError
from .fingerprint import fingerprint, identity
from .models import MANAGED_BY_KEY, SHIFT_HASH_KEY, SHIFT_ID_KEY, Shift

DEFAULT_SUMMARY = "Shift"


def validate_shift(shift: Shift) -> None:
    if not identity(shift):
        raise TranslationError(None, "missing shift id")
    if shift.start is None or shift.end is None:
        raise TranslationError(shift.shift_id, "missing start or end time")
    if shift.end <= shift.start:
        raise TranslationError(shift.shift_id, f"end {shift.end} is not after start {shift.start}")


def to_event_draft(
    shift: Shift,
    sync_tag: str,
    timezone: ZoneInfo,
    color_id: Optional[str] = None,
    location: Optional[str] = None,
) -> dict:
    """Build the Google Calendar event body for ``shift``.

    ``color_id`` is the display colour carried forward from the existing
    events; when it is None the body leaves the colour unset. ``location``
    overrides the shift's own location as the event address.
    """
    validate_shift(shift)
    role = (shift.role or "").strip()
    tz_name = timezone.key
    body = {
        "summary": role or DEFAULT_SUMMARY,
        "start": {"dateTime": shift.start.astimezone(timezone).isoformat(), "timeZone": tz_name},
        "end": {"dateTime": shift.end.astimezone(timezone).isoformat(), "timeZone": tz_name},
        "extendedProperties": {
            "private": {
                MANAGED_BY_KEY: sync_tag,
                SHIFT_ID_KEY: identity(shift),
                SHIFT_HASH_KEY: fingerprint(shift),
            }
        },
    }
    address = location or shift.location
    if address:
        body["location"] = address
    if shift.location:
        body["description"] = f"{role or DEFAULT_SUMMARY} @ {shift.location}"
    else:
        body["description"] = role or DEFAULT_SUMMARY
    if color_id:
        body["colorId"] = color_id
    return body
