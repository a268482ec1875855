from __future__ import annotations

from typing import Optional


class SyncError(Exception):
    pass


class FetchError(SyncError):
    """A snapshot could not be retrieved; the pass must not reconcile."""


class SessionExpired(FetchError):
    pass


class TranslationError(SyncError):
    def __init__(self, shift_id: Optional[str], message: str) -> None:
        super().__init__(f"shift {shift_id or '<no id>'}: {message}")
        self.shift_id = shift_id


class WriteError(SyncError):
    def __init__(self, action: str, event_id: Optional[str], message: str) -> None:
        super().__init__(f"{action} {event_id or '<new>'} failed: {message}")
        self.action = action
        self.event_id = event_id
