"""QuickTest Service — the lifecycle engine over the record store.

Invariants:
    - Inputs are validated before a unit of work is opened
    - Each operation runs in exactly one unit of work; read and conditional write share it
    - No operation commits a partial effect: any raise inside the unit rolls it back
    - The service holds no locks; concurrent registrations are serialized by the store
    - Registration never looks at elapsed time; only the expiry operations scrub

Design Decisions:
    - Clock passed at construction and handed to every unit of work
    - Implements QuickTestServiceProtocol (core/repository_protocols.py) structurally
"""

import dataclasses
import logging
from datetime import timedelta

from rona.core.domain_types import Clock
from rona.core.errors import ErrorContext, InternalError, InvalidError, NotFoundError
from rona.core.quicktest import (
    QuickTest, QuickTestCounts, QuickTestRegistration,
    check_registrable, validate_quicktest_id, validate_quicktest_ids,
)
from rona.infrastructure import quicktest_store as store
from rona.infrastructure.database import DatabaseSessionManager

logger = logging.getLogger(__name__)


class QuickTestService:
    """Create, register and expire quick tests."""

    def __init__(self, db: DatabaseSessionManager, clock: Clock | None = None):
        self._db = db
        self._clock = clock

    async def find_quicktest_by_id(self, quicktest_id: str) -> QuickTest:
        qid = validate_quicktest_id(quicktest_id)
        async with self._db.unit_of_work(self._clock) as uow:
            quicktest = await store.fetch_by_id(uow, qid)
        if quicktest is None:
            raise NotFoundError(qid, ErrorContext(operation="find"))
        return quicktest

    async def create_quicktest(self, quicktest_id: str) -> QuickTest:
        quicktests = await self.create_many_quicktests([quicktest_id])
        if len(quicktests) != 1:
            raise InternalError(
                "Expected quick test to be created, but wasn't", "create",
            )
        return quicktests[0]

    async def create_many_quicktests(
        self, quicktest_ids: list[str],
    ) -> list[QuickTest]:
        """All-or-nothing batch creation with a single created_at."""
        qids = validate_quicktest_ids(quicktest_ids)
        if not qids:
            return []
        async with self._db.unit_of_work(self._clock) as uow:
            quicktests = await store.insert_many(uow, qids)
            await uow.commit()
        logger.info(
            f"Created {len(quicktests)} quick test(s)",
            extra={"operation": "create", "count": len(quicktests)},
        )
        return quicktests

    async def register_quicktest(
        self, registration: QuickTestRegistration,
    ) -> QuickTest:
        """Bind a registrant to an unregistered, unexpired kit."""
        registration.validate()
        async with self._db.unit_of_work(self._clock) as uow:
            quicktest = await store.fetch_by_id(
                uow, registration.id, for_update=True,
            )
            if quicktest is None:
                raise NotFoundError(
                    registration.id, ErrorContext(operation="register"),
                )
            check_registrable(quicktest)
            await store.update_registration(
                uow, quicktest.id, registration.person, uow.now,
            )
            await uow.commit()
        logger.info(
            "Quick test registered",
            extra={"quicktest_id": quicktest.id, "operation": "register"},
        )
        return dataclasses.replace(
            quicktest, person=registration.person, registered_at=uow.now,
        )

    async def expire_quicktest(self, quicktest_id: str) -> None:
        """Scrub one kit. Succeeds again on an already expired kit."""
        qid = validate_quicktest_id(quicktest_id)
        async with self._db.unit_of_work(self._clock) as uow:
            if not await store.expire_by_id(uow, qid):
                raise NotFoundError(qid, ErrorContext(operation="expire"))
            await uow.commit()
        logger.info(
            "Quick test expired",
            extra={"quicktest_id": qid, "operation": "expire"},
        )

    async def expire_outdated_quicktests(self, validity: timedelta) -> int:
        """Scrub every registration older than validity. Returns rows scrubbed."""
        if validity < timedelta(0):
            raise InvalidError("Validity must not be negative", field="validity")
        async with self._db.unit_of_work(self._clock) as uow:
            affected = await store.expire_outdated(uow, validity)
            await uow.commit()
        if affected:
            logger.info(
                f"Expired {affected} outdated quick test(s)",
                extra={"operation": "expire_outdated", "affected": affected},
            )
        return affected

    async def count_quicktests(self) -> QuickTestCounts:
        async with self._db.unit_of_work(self._clock) as uow:
            return await store.count_by_status(uow)
