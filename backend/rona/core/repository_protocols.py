"""Boundary Protocols — the capability interface the adapter layer depends on.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - Adapters depend on QuickTestServiceProtocol, not on QuickTestService
    - Test doubles implement the protocol structurally (no record/replay mock)

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO; core pure functions stay sync
"""

from datetime import timedelta
from typing import Protocol

from rona.core.quicktest import QuickTest, QuickTestRegistration


class QuickTestServiceProtocol(Protocol):
    """The six lifecycle operations, implemented by services/quicktest_service.py."""
    async def find_quicktest_by_id(self, quicktest_id: str) -> QuickTest: ...
    async def create_quicktest(self, quicktest_id: str) -> QuickTest: ...
    async def create_many_quicktests(
        self, quicktest_ids: list[str],
    ) -> list[QuickTest]: ...
    async def register_quicktest(
        self, registration: QuickTestRegistration,
    ) -> QuickTest: ...
    async def expire_quicktest(self, quicktest_id: str) -> None: ...
    async def expire_outdated_quicktests(self, validity: timedelta) -> int: ...
