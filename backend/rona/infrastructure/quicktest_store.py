"""QuickTest Store — raw reads and writes against quick_tests inside a unit of work.

Invariants:
    - Every function takes the caller's UnitOfWork; none commits or opens its own
    - Timestamps written here come from uow.now, never from the database clock
    - The store enforces storage integrity only (uniqueness); business rules live in core/
    - A batch insert is one execute() in one transaction: a duplicate anywhere raises
      IntegrityError and the unit of work discards the whole batch

Design Decisions:
    - Module functions over a repository class: the unit of work is the only state
    - Core-style insert/update statements with synchronize_session=False: no identity
      map bookkeeping, rowcount reflects rows matched
"""

from datetime import datetime, timedelta

from sqlalchemy import case, func, insert, select, update

from rona.core.domain_types import QuickTestId
from rona.core.quicktest import QuickTest, QuickTestCounts
from rona.infrastructure.database import UnitOfWork
from rona.models.quick_test import QuickTestRow


def to_quicktest(row: QuickTestRow) -> QuickTest:
    """Detach an ORM row into an immutable domain snapshot."""
    return QuickTest(
        id=QuickTestId(row.id),
        person=row.person or "",
        created_at=row.created_at,
        registered_at=row.registered_at,
        expired=row.expired,
    )


async def fetch_by_id(
    uow: UnitOfWork, quicktest_id: str, for_update: bool = False,
) -> QuickTest | None:
    """Current row or None. for_update locks the row on backends with row locks."""
    query = select(QuickTestRow).where(QuickTestRow.id == quicktest_id).limit(1)
    if for_update:
        query = query.with_for_update()
    result = await uow.session.execute(query)
    row = result.scalar_one_or_none()
    return to_quicktest(row) if row is not None else None


async def insert_many(
    uow: UnitOfWork, quicktest_ids: list[QuickTestId],
) -> list[QuickTest]:
    """Insert unregistered rows sharing one created_at. Raises IntegrityError on collision."""
    if not quicktest_ids:
        return []
    quicktests = [QuickTest(id=qid, created_at=uow.now) for qid in quicktest_ids]
    await uow.session.execute(
        insert(QuickTestRow),
        [
            {"id": qt.id, "created_at": qt.created_at, "expired": False}
            for qt in quicktests
        ],
    )
    return quicktests


async def update_registration(
    uow: UnitOfWork, quicktest_id: str, person: str, registered_at: datetime,
) -> None:
    """Unconditional write of person and registered_at."""
    await uow.session.execute(
        update(QuickTestRow)
        .where(QuickTestRow.id == quicktest_id)
        .values(person=person or None, registered_at=registered_at)
        .execution_options(synchronize_session=False),
    )


async def expire_by_id(uow: UnitOfWork, quicktest_id: str) -> bool:
    """Scrub one row. True if a row with this id exists (expired or not)."""
    result = await uow.session.execute(
        update(QuickTestRow)
        .where(QuickTestRow.id == quicktest_id)
        .values(expired=True, person=None)
        .execution_options(synchronize_session=False),
    )
    return result.rowcount == 1


async def expire_outdated(uow: UnitOfWork, validity: timedelta) -> int:
    """Scrub every live registration older than validity, measured from uow.now."""
    cutoff = uow.now - validity
    result = await uow.session.execute(
        update(QuickTestRow)
        .where(
            QuickTestRow.expired.is_(False),
            QuickTestRow.registered_at.is_not(None),
            QuickTestRow.registered_at < cutoff,
        )
        .values(expired=True, person=None)
        .execution_options(synchronize_session=False),
    )
    return result.rowcount


async def count_by_status(uow: UnitOfWork) -> QuickTestCounts:
    """Total, available (unregistered), registered and expired counts in one query."""
    live = QuickTestRow.expired.is_(False)
    query = select(
        func.count(),
        func.coalesce(func.sum(case(
            (live & QuickTestRow.registered_at.is_(None), 1), else_=0,
        )), 0),
        func.coalesce(func.sum(case(
            (live & QuickTestRow.registered_at.is_not(None), 1), else_=0,
        )), 0),
        func.coalesce(func.sum(case((QuickTestRow.expired.is_(True), 1), else_=0)), 0),
    ).select_from(QuickTestRow)
    total, available, registered, expired = (await uow.session.execute(query)).one()
    return QuickTestCounts(
        total=total, available=available, registered=registered, expired=expired,
    )
