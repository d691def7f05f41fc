"""Error Hierarchy — the closed set of failure kinds a caller can observe.

Invariants:
    - Every error carries exactly one ErrorKind; the set of kinds is closed
    - INTERNAL is the only kind that signals a bug or an ops problem
    - to_response() never includes raw storage messages
    - error_kind() maps anything that is not a RonaError to INTERNAL

Design Decisions:
    - Storage exceptions are classified once, in the unit of work
      (infrastructure/database.py), never at individual call sites
    - ErrorContext as dataclass: carries observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorKind(str, Enum):
    """Machine-readable error kinds."""
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    EXPIRED = "expired"
    INTERNAL = "internal"


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    quicktest_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class RonaError(Exception):
    """Base exception for all Rona errors."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def code(self) -> str:
        return self.kind.value.upper()

    def __str__(self) -> str:
        return f"rona error: kind={self.kind.value} message={self.message}"

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "kind": self.kind.value,
                "code": self.code,
                "message": self.message,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "quicktest_id": self.context.quicktest_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Business Errors (400-level) ────────────────────────────────

class InvalidError(RonaError):
    """Malformed identifier or registration payload."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, ErrorKind.INVALID, ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class NotFoundError(RonaError):
    """Operation targets a nonexistent quick test."""
    def __init__(self, quicktest_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.quicktest_id = quicktest_id
        super().__init__(
            f"No quick test found for {quicktest_id}",
            ErrorKind.NOT_FOUND, ErrorSeverity.WARNING, ctx, 404,
        )


class ConflictError(RonaError):
    """Duplicate id, or registration of an already registered quick test."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, ErrorKind.CONFLICT, ErrorSeverity.WARNING, context, 409,
        )


class ExpiredError(RonaError):
    """Registration attempted on a scrubbed quick test."""
    def __init__(self, quicktest_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.quicktest_id = quicktest_id
        super().__init__(
            "Test has already expired",
            ErrorKind.EXPIRED, ErrorSeverity.WARNING, ctx, 410,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class InternalError(RonaError):
    """Storage failure or any other unexpected condition."""
    def __init__(self, message: str, operation: str = "unknown", context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            message, ErrorKind.INTERNAL, ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.operation = operation


def error_kind(exc: BaseException | None) -> ErrorKind | None:
    """Unwrap any exception into its ErrorKind. None in, None out."""
    if exc is None:
        return None
    if isinstance(exc, RonaError):
        return exc.kind
    return ErrorKind.INTERNAL
