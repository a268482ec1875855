from __future__ import annotations

from .models import Shift
from .utils import hash_source, utc_iso

FINGERPRINT_LENGTH = 16


def identity(shift: Shift) -> str:
    return shift.shift_id


def fingerprint(shift: Shift) -> str:
    # Only fields whose change means "the shift changed"; never the identity.
    parts = [
        (shift.role or "").strip(),
        (shift.location or "").strip(),
        utc_iso(shift.start),
        utc_iso(shift.end),
    ]
    return hash_source(parts)[:FINGERPRINT_LENGTH]
