from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Optional

MANAGED_BY_KEY = "managed_by"
SHIFT_ID_KEY = "shift_id"
SHIFT_HASH_KEY = "shift_hash"

STATUS_CANCELLED = "cancelled"


@dataclass(frozen=True)
class Shift:
    shift_id: str
    role: str
    location: Optional[str]
    start: Optional[dt.datetime]
    end: Optional[dt.datetime]
    department: Optional[str] = None
    raw: Optional[dict] = field(default=None, compare=False, repr=False)


def _parse_when(when: Optional[dict]) -> Optional[dt.datetime]:
    if not when:
        return None
    if when.get("dateTime"):
        return dt.datetime.fromisoformat(when["dateTime"])
    if when.get("date"):
        day = dt.date.fromisoformat(when["date"])
        return dt.datetime.combine(day, dt.time.min, tzinfo=dt.timezone.utc)
    return None


@dataclass
class CalendarEvent:
    event_id: str
    summary: str
    start: Optional[dt.datetime]
    end: Optional[dt.datetime]
    status: str = "confirmed"
    color_id: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def sync_tag(self) -> Optional[str]:
        return self.metadata.get(MANAGED_BY_KEY)

    @property
    def shift_id(self) -> Optional[str]:
        return self.metadata.get(SHIFT_ID_KEY) or None

    @property
    def fingerprint(self) -> Optional[str]:
        return self.metadata.get(SHIFT_HASH_KEY)

    @property
    def active(self) -> bool:
        return self.status != STATUS_CANCELLED

    @classmethod
    def from_gcal(cls, item: dict) -> "CalendarEvent":
        props = item.get("extendedProperties", {}).get("private", {})
        return cls(
            event_id=item["id"],
            summary=item.get("summary", ""),
            start=_parse_when(item.get("start")),
            end=_parse_when(item.get("end")),
            status=item.get("status", "confirmed"),
            color_id=item.get("colorId"),
            metadata=dict(props),
        )
