"""QuickTest Store — raw row operations inside a unit of work.

Tests cover:
    - fetch_by_id returns a detached snapshot or None
    - insert_many shares created_at and rejects collisions as a whole
    - expire_by_id reports existence, not prior state
    - expire_outdated matches only live registrations older than the window
    - count_by_status buckets rows by lifecycle state
"""

from datetime import datetime, timedelta, timezone

import pytest

from rona.core.domain_types import fixed_clock
from rona.core.errors import ConflictError
from rona.core.quicktest import new_quicktest_id
from rona.infrastructure import quicktest_store as store

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


async def _insert(db_manager, *qids, at=NOW):
    async with db_manager.unit_of_work(fixed_clock(at)) as uow:
        quicktests = await store.insert_many(uow, list(qids))
        await uow.commit()
    return quicktests


async def _register(db_manager, qid, person, at):
    async with db_manager.unit_of_work(fixed_clock(at)) as uow:
        await store.update_registration(uow, qid, person, uow.now)
        await uow.commit()


async def _fetch(db_manager, qid):
    async with db_manager.unit_of_work() as uow:
        return await store.fetch_by_id(uow, qid)


async def test_fetch_missing_returns_none(db_manager):
    assert await _fetch(db_manager, new_quicktest_id()) is None


async def test_insert_then_fetch_unregistered(db_manager):
    qid = new_quicktest_id()
    await _insert(db_manager, qid)

    found = await _fetch(db_manager, qid)
    assert found.id == qid
    assert found.created_at == NOW
    assert found.person == ""
    assert found.registered_at is None
    assert found.expired is False


async def test_insert_empty_batch_is_noop(db_manager):
    assert await _insert(db_manager) == []


async def test_insert_batch_shares_created_at(db_manager):
    qids = [new_quicktest_id() for _ in range(4)]
    quicktests = await _insert(db_manager, *qids)
    assert [qt.id for qt in quicktests] == qids
    assert {qt.created_at for qt in quicktests} == {NOW}


async def test_insert_batch_with_existing_id_persists_nothing(db_manager):
    existing = new_quicktest_id()
    await _insert(db_manager, existing)
    fresh = new_quicktest_id()

    with pytest.raises(ConflictError):
        await _insert(db_manager, fresh, existing)

    assert await _fetch(db_manager, fresh) is None


async def test_insert_batch_with_internal_duplicate_persists_nothing(db_manager):
    dup = new_quicktest_id()
    with pytest.raises(ConflictError):
        await _insert(db_manager, dup, dup)
    assert await _fetch(db_manager, dup) is None


async def test_update_registration_writes_person_and_time(db_manager):
    qid = new_quicktest_id()
    await _insert(db_manager, qid)
    await _register(db_manager, qid, "Tim", NOW + timedelta(minutes=5))

    found = await _fetch(db_manager, qid)
    assert found.person == "Tim"
    assert found.registered_at == NOW + timedelta(minutes=5)


async def test_expire_by_id_scrubs_person_keeps_registered_at(db_manager):
    qid = new_quicktest_id()
    await _insert(db_manager, qid)
    await _register(db_manager, qid, "Tim", NOW)

    async with db_manager.unit_of_work() as uow:
        assert await store.expire_by_id(uow, qid) is True
        await uow.commit()

    found = await _fetch(db_manager, qid)
    assert found.expired is True
    assert found.person == ""
    assert found.registered_at == NOW


async def test_expire_by_id_matches_already_expired_row(db_manager):
    qid = new_quicktest_id()
    await _insert(db_manager, qid)
    for _ in range(2):
        async with db_manager.unit_of_work() as uow:
            assert await store.expire_by_id(uow, qid) is True
            await uow.commit()


async def test_expire_by_id_missing_returns_false(db_manager):
    async with db_manager.unit_of_work() as uow:
        assert await store.expire_by_id(uow, new_quicktest_id()) is False


async def test_expire_outdated_uses_unit_clock(db_manager):
    old, recent, never = new_quicktest_id(), new_quicktest_id(), new_quicktest_id()
    await _insert(db_manager, old, recent, never, at=NOW - timedelta(days=3))
    await _register(db_manager, old, "Tim", NOW - timedelta(hours=25))
    await _register(db_manager, recent, "Jim", NOW - timedelta(hours=23))

    async with db_manager.unit_of_work(fixed_clock(NOW)) as uow:
        affected = await store.expire_outdated(uow, timedelta(hours=24))
        await uow.commit()

    assert affected == 1
    assert (await _fetch(db_manager, old)).expired is True
    assert (await _fetch(db_manager, recent)).person == "Jim"
    assert (await _fetch(db_manager, never)).expired is False


async def test_expire_outdated_skips_already_expired(db_manager):
    qid = new_quicktest_id()
    await _insert(db_manager, qid)
    await _register(db_manager, qid, "Tim", NOW - timedelta(hours=30))

    for expected in (1, 0):
        async with db_manager.unit_of_work(fixed_clock(NOW)) as uow:
            assert await store.expire_outdated(uow, timedelta(hours=24)) == expected
            await uow.commit()


async def test_count_by_status(db_manager):
    available, registered, expired = (
        new_quicktest_id(), new_quicktest_id(), new_quicktest_id(),
    )
    await _insert(db_manager, available, registered, expired)
    await _register(db_manager, registered, "Tim", NOW)
    await _register(db_manager, expired, "Jim", NOW)
    async with db_manager.unit_of_work() as uow:
        await store.expire_by_id(uow, expired)
        await uow.commit()

    async with db_manager.unit_of_work() as uow:
        counts = await store.count_by_status(uow)
    assert (counts.total, counts.available, counts.registered, counts.expired) == (
        3, 1, 1, 1,
    )


async def test_count_by_status_empty(db_manager):
    async with db_manager.unit_of_work() as uow:
        counts = await store.count_by_status(uow)
    assert counts.total == 0
    assert counts.expired == 0
