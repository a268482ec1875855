from __future__ import annotations

import datetime as dt
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from .errors import SyncError, TranslationError, WriteError
from .models import STATUS_CANCELLED, CalendarEvent, Shift
from .reconciler import Plan, reconcile
from .translator import to_event_draft, validate_shift


@dataclass
class PassResult:
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    cancelled: List[str] = field(default_factory=list)
    errors: List[SyncError] = field(default_factory=list)
    color: Optional[str] = None
    plan: Optional[Plan] = None

    @property
    def ok(self) -> bool:
        return not self.errors


def carried_color(events: List[CalendarEvent], fallback: Optional[str]) -> Optional[str]:
    # Last listed event wins; the listing order is whatever the server returns.
    if events and events[-1].color_id:
        return events[-1].color_id
    return fallback


def _describe(shift: Shift) -> str:
    return f"{shift.role} {shift.start} - {shift.end}"


class SyncDriver:
    def __init__(
        self,
        source,
        target,
        sync_tag: str,
        timezone: ZoneInfo,
        location: Optional[str] = None,
        max_workers: int = 4,
        dry_run: bool = False,
        clock: Optional[Callable[[], dt.datetime]] = None,
    ) -> None:
        self.source = source
        self.target = target
        self.sync_tag = sync_tag
        self.timezone = timezone
        self.location = location
        self.max_workers = max_workers
        self.dry_run = dry_run
        self._clock = clock or (lambda: dt.datetime.now(timezone))

    @classmethod
    def from_settings(cls, settings, source, target, dry_run: bool = False) -> "SyncDriver":
        return cls(
            source,
            target,
            sync_tag=settings.sync_tag,
            timezone=settings.timezone,
            location=settings.event_location,
            max_workers=settings.max_workers,
            dry_run=dry_run,
        )

    def _draft(self, shift: Shift, color: Optional[str]) -> dict:
        return to_event_draft(shift, self.sync_tag, self.timezone, color_id=color, location=self.location)

    def run_pass(self, color_hint: Optional[str] = None) -> PassResult:
        logging.info("Performing sync...")
        now = self._clock()

        # Both fetches must succeed before anything is reconciled.
        shifts = self.source.list_shifts(now)
        events = self.target.list_events(self.sync_tag, now)

        result = PassResult(color=carried_color(events, color_hint))

        valid: List[Shift] = []
        withheld: set[str] = set()
        for shift in shifts:
            try:
                validate_shift(shift)
            except TranslationError as exc:
                logging.warning("Skipping malformed shift: %s", exc)
                result.errors.append(exc)
                if shift.shift_id:
                    withheld.add(shift.shift_id)
                continue
            valid.append(shift)

        candidates = [e for e in events if e.shift_id not in withheld]
        plan = reconcile(valid, candidates, not_before=now)
        result.plan = plan
        for dup in plan.duplicates:
            result.errors.append(TranslationError(dup.shift_id, "duplicate shift id in roster snapshot"))

        if plan.empty:
            logging.info("Calendar already up to date")
        elif self.dry_run:
            self._log_plan(plan)
        else:
            self._apply(plan, result)

        logging.info(
            "Sync finished: %d created, %d updated, %d cancelled, %d errors",
            len(result.created),
            len(result.updated),
            len(result.cancelled),
            len(result.errors),
        )
        return result

    def _log_plan(self, plan: Plan) -> None:
        for shift in plan.to_create:
            logging.info("DRY RUN add shift: %s", _describe(shift))
        for event_id, shift in plan.to_update:
            logging.info("DRY RUN update shift %s: %s", event_id, _describe(shift))
        for event in plan.to_cancel:
            logging.info("DRY RUN cancel shift %s %s - %s", event.summary, event.start, event.end)

    def _create(self, shift: Shift, color: Optional[str]) -> str:
        logging.info("Adding shift: %s", _describe(shift))
        return self.target.create(self._draft(shift, color)).event_id

    def _update(self, event_id: str, shift: Shift, color: Optional[str]) -> str:
        logging.info("Updating shift: %s", _describe(shift))
        return self.target.update(event_id, self._draft(shift, color)).event_id

    def _cancel(self, event: CalendarEvent) -> str:
        logging.info("Cancelling shift %s %s - %s", event.summary, event.start, event.end)
        return self.target.set_status(event.event_id, STATUS_CANCELLED).event_id

    def _apply(self, plan: Plan, result: PassResult) -> None:
        color = result.color
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {}
            for shift in plan.to_create:
                futures[pool.submit(self._create, shift, color)] = (result.created, "create", None)
            for event_id, shift in plan.to_update:
                futures[pool.submit(self._update, event_id, shift, color)] = (result.updated, "update", event_id)
            for event in plan.to_cancel:
                futures[pool.submit(self._cancel, event)] = (result.cancelled, "set_status", event.event_id)

            for future in as_completed(futures):
                done, action, event_id = futures[future]
                try:
                    done.append(future.result())
                except WriteError as exc:
                    logging.error("%s", exc)
                    result.errors.append(exc)
                except Exception as exc:
                    logging.exception("Unexpected failure during %s of %s", action, event_id or "new event")
                    result.errors.append(WriteError(action, event_id, str(exc)))
