"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - QuickTestId wraps the canonical text of a random (version 4) UUID
    - QUICKTEST_VALIDITY is exactly 24 hours
    - All valid states encoded as Enums, no raw string matching
    - Clock is the only way core/ and services/ learn the current time

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, NewType


# ─── Identity Types ──────────────────────────────────────────────

QuickTestId = NewType("QuickTestId", str)


# ─── Constants ───────────────────────────────────────────────────

QUICKTEST_VALIDITY = timedelta(hours=24)
QUICKTEST_MAX_PERSON_LEN = 4000


# ─── Time ────────────────────────────────────────────────────────

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: aware UTC."""
    return datetime.now(timezone.utc)


def fixed_clock(at: datetime) -> Clock:
    """Clock pinned to a single instant."""
    return lambda: at


# ─── Enums ───────────────────────────────────────────────────────

class QuickTestStatus(str, Enum):
    """Quick test lifecycle states, derived from registered_at and expired."""
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    EXPIRED = "expired"
