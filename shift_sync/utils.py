from __future__ import annotations

import hashlib
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from .models import Shift


def build_datetime(day: date, time_str: str, tz: ZoneInfo) -> datetime:
    hour, minute = [int(x) for x in time_str.split(":", 1)]
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=tz)


def parse_instant(value: object, tz: ZoneInfo) -> Optional[datetime]:
    """Parse an ISO-8601 string from the roster, localizing naive values to ``tz``."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def utc_iso(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.astimezone(timezone.utc).isoformat()


def hash_source(parts: Iterable[str]) -> str:
    hasher = hashlib.sha1()
    joined = "|".join(parts)
    hasher.update(joined.encode("utf-8"))
    return hasher.hexdigest()


def partition_shifts_by_id(shifts: List[Shift]) -> Tuple[dict[str, Shift], list[Shift]]:
    unique: dict[str, Shift] = {}
    duplicates: list[Shift] = []
    for shift in shifts:
        if shift.shift_id in unique:
            duplicates.append(shift)
        else:
            unique[shift.shift_id] = shift
    return unique, duplicates
