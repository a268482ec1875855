from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .fingerprint import fingerprint, identity
from .models import CalendarEvent, Shift
from .utils import partition_shifts_by_id


@dataclass
class Plan:
    to_create: List[Shift] = field(default_factory=list)
    to_update: List[Tuple[str, Shift]] = field(default_factory=list)
    to_cancel: List[CalendarEvent] = field(default_factory=list)
    duplicates: List[Shift] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_cancel)

    def __len__(self) -> int:
        return len(self.to_create) + len(self.to_update) + len(self.to_cancel)


def _in_window(start: Optional[dt.datetime], not_before: Optional[dt.datetime]) -> bool:
    if not_before is None:
        return True
    return start is not None and start >= not_before


def index_events(events: Iterable[CalendarEvent]) -> Tuple[dict[str, CalendarEvent], list[CalendarEvent]]:
    """Index active events by echoed shift id.

    Events without a shift id are left out entirely. When several active
    events carry the same id the first one listed is kept and the rest are
    returned as surplus.
    """
    indexed: dict[str, CalendarEvent] = {}
    surplus: list[CalendarEvent] = []
    for event in events:
        if not event.active or not event.shift_id:
            continue
        if event.shift_id in indexed:
            surplus.append(event)
        else:
            indexed[event.shift_id] = event
    return indexed, surplus


def reconcile(
    shifts: List[Shift],
    events: List[CalendarEvent],
    not_before: Optional[dt.datetime] = None,
) -> Plan:
    events = [e for e in events if _in_window(e.start, not_before)]

    unique, duplicates = partition_shifts_by_id(shifts)
    for dup in duplicates:
        logging.warning("Duplicate shift id %s in roster snapshot; keeping the first", dup.shift_id)

    indexed, surplus = index_events(events)
    plan = Plan(duplicates=duplicates)

    # A shift moved before not_before may still update its in-window event,
    # but past shifts are never created.
    for shift_id, shift in unique.items():
        match = indexed.get(identity(shift))
        if match is None:
            if _in_window(shift.start, not_before):
                plan.to_create.append(shift)
        elif match.fingerprint != fingerprint(shift):
            plan.to_update.append((match.event_id, shift))

    for shift_id, event in indexed.items():
        if shift_id not in unique:
            plan.to_cancel.append(event)
    plan.to_cancel.extend(surplus)
    return plan
