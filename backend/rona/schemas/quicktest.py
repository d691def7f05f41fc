"""QuickTest Schemas — Pydantic models for the quick test API boundary.

Invariants:
    - Field shapes only; id format and person length are enforced by core/quicktest.py
      so every payload error surfaces as the same INVALID kind
    - QuickTestResponse.person is "" when unregistered or expired
"""

from datetime import datetime

from pydantic import BaseModel, Field

from rona.core.domain_types import QuickTestStatus
from rona.core.quicktest import QuickTest, QuickTestCounts


class QuickTestCreate(BaseModel):
    """Batch creation of unregistered kits."""
    ids: list[str] = Field(default_factory=list)


class QuickTestRegister(BaseModel):
    """Registration payload; the kit id comes from the path."""
    person: str = ""


class QuickTestResponse(BaseModel):
    """Public-facing quick test."""
    id: str
    person: str
    status: QuickTestStatus
    expired: bool
    created_at: datetime
    registered_at: datetime | None = None

    @classmethod
    def from_domain(cls, quicktest: QuickTest) -> "QuickTestResponse":
        return cls(
            id=quicktest.id,
            person=quicktest.person,
            status=quicktest.status,
            expired=quicktest.expired,
            created_at=quicktest.created_at,
            registered_at=quicktest.registered_at,
        )


class ExpireOutdatedResponse(BaseModel):
    expired: int


class QuickTestCountsResponse(BaseModel):
    total: int
    available: int
    registered: int
    expired: int

    @classmethod
    def from_domain(cls, counts: QuickTestCounts) -> "QuickTestCountsResponse":
        return cls(
            total=counts.total,
            available=counts.available,
            registered=counts.registered,
            expired=counts.expired,
        )
