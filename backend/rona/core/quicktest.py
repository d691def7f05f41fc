"""Quick Test Rules — the entity, its validation and its registration state machine.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Validators raise InvalidError; transition checks raise ConflictError / ExpiredError
    - person is "" whenever the test is unregistered or expired
    - Expiry is a function of registered_at and a caller-supplied now

Design Decisions:
    - Frozen dataclass for QuickTest: callers receive snapshots, never live ORM rows
    - check_registrable tests "expired" before "registered": once scrubbed, registered_at
      is kept for audit only and the test always reports EXPIRED
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from rona.core.domain_types import (
    QuickTestId, QuickTestStatus,
    QUICKTEST_VALIDITY, QUICKTEST_MAX_PERSON_LEN,
)
from rona.core.errors import ConflictError, ErrorContext, ExpiredError, InvalidError


@dataclass(frozen=True)
class QuickTest:
    """A physical test kit. The manufacturer enters unregistered kits in bulk."""
    id: QuickTestId
    created_at: datetime
    person: str = ""
    registered_at: datetime | None = None
    expired: bool = False

    @property
    def is_registered(self) -> bool:
        return self.registered_at is not None

    @property
    def status(self) -> QuickTestStatus:
        if self.expired:
            return QuickTestStatus.EXPIRED
        if self.is_registered:
            return QuickTestStatus.REGISTERED
        return QuickTestStatus.UNREGISTERED

    def should_expire(
        self, now: datetime, validity: timedelta = QUICKTEST_VALIDITY,
    ) -> bool:
        """True once the validity window since registration has fully elapsed."""
        if self.expired or self.registered_at is None:
            return False
        return now - self.registered_at > validity


@dataclass(frozen=True)
class QuickTestCounts:
    """Snapshot of how many quick tests sit in each lifecycle state."""
    total: int = 0
    available: int = 0
    registered: int = 0
    expired: int = 0


@dataclass(frozen=True)
class QuickTestRegistration:
    """Request to bind a registrant to a kit."""
    id: str
    person: str

    def validate(self) -> None:
        validate_quicktest_id(self.id)
        if not self.person or not self.person.strip():
            raise InvalidError("Person is required", field="person")
        if len(self.person) > QUICKTEST_MAX_PERSON_LEN:
            raise InvalidError(
                f"Person must be at most {QUICKTEST_MAX_PERSON_LEN} characters",
                field="person",
            )
        try:
            self.person.encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidError(
                "Person must be valid Unicode text", field="person",
            ) from None


def new_quicktest_id() -> QuickTestId:
    """Generate a fresh kit identifier."""
    return QuickTestId(str(uuid.uuid4()))


def validate_quicktest_id(quicktest_id: str) -> QuickTestId:
    """Accept only the canonical lowercase text of a version 4 UUID."""
    if not quicktest_id:
        raise InvalidError("Quick test ID is required", field="id")
    if not isinstance(quicktest_id, str):
        raise InvalidError("Quick test ID must be a string", field="id")
    try:
        parsed = uuid.UUID(quicktest_id)
    except ValueError:
        raise InvalidError(
            f"Invalid quick test ID: {quicktest_id!r}", field="id",
        ) from None
    if parsed.version != 4 or str(parsed) != quicktest_id:
        raise InvalidError(
            f"Invalid quick test ID: {quicktest_id!r}", field="id",
        )
    return QuickTestId(quicktest_id)


def validate_quicktest_ids(quicktest_ids: list[str]) -> list[QuickTestId]:
    """Validate a whole batch before anything is written. First failure wins."""
    return [validate_quicktest_id(qid) for qid in quicktest_ids]


def check_registrable(quicktest: QuickTest) -> None:
    """Rule: a kit is registered at most once, and never after it was scrubbed."""
    ctx = ErrorContext(quicktest_id=quicktest.id, operation="register")
    if quicktest.expired:
        raise ExpiredError(quicktest.id, ctx)
    if quicktest.is_registered:
        raise ConflictError("Test has already been registered", ctx)
