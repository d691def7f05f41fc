"""Column Types — timestamps stored the same way on every backend.

Invariants:
    - Bound values are converted to UTC and stored without tzinfo
    - Loaded values always come back timezone-aware (UTC)
    - Naive datetimes are rejected on write; the clock only produces aware values
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """Aware datetime in Python, naive UTC in the database (sortable as text on SQLite)."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires a timezone-aware datetime")
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)
