from datetime import date, datetime, time, timezone

import pytest

from sqlalchemy.future import select

from dispatch.models.activity_log import ActivityLog
from dispatch.models.route_batch import BatchStatus, RouteBatch
from dispatch.models.zone import Zone
from dispatch.services.routing import batch_manager
from dispatch.services.routing.errors import InvalidTransitionError, NotFoundError

from conftest import ADMIN_ID, TENANT_ID

TODAY = date(2026, 1, 15)
CUTOFF = time(14, 30)


def test_order_after_cutoff_rolls_to_tomorrow() -> None:
    now = datetime(2026, 1, 15, 15, 0)
    assert batch_manager.resolve_batch_date(TODAY, now, CUTOFF) == date(2026, 1, 16)


def test_order_before_cutoff_stays_today() -> None:
    now = datetime(2026, 1, 15, 9, 45)
    assert batch_manager.resolve_batch_date(TODAY, now, CUTOFF) == TODAY


def test_order_exactly_at_cutoff_stays_today() -> None:
    now = datetime(2026, 1, 15, 14, 30, 0)
    assert batch_manager.resolve_batch_date(TODAY, now, CUTOFF) == TODAY


def test_future_pickup_date_ignores_cutoff() -> None:
    now = datetime(2026, 1, 15, 23, 0)
    assert batch_manager.resolve_batch_date(date(2026, 1, 20), now, CUTOFF) == date(2026, 1, 20)


def test_past_pickup_date_is_kept() -> None:
    now = datetime(2026, 1, 15, 16, 0)
    assert batch_manager.resolve_batch_date(date(2026, 1, 1), now, CUTOFF) == date(2026, 1, 1)


def test_aware_now_is_converted_to_local_time() -> None:
    # 20:00 UTC is 15:00 in New York (EST)
    now = datetime(2026, 1, 15, 20, 0, tzinfo=timezone.utc)
    assert batch_manager.resolve_batch_date(TODAY, now, CUTOFF) == date(2026, 1, 16)


def test_default_cutoff_is_half_past_two() -> None:
    assert batch_manager.resolve_batch_date(TODAY, datetime(2026, 1, 15, 14, 31)) == date(2026, 1, 16)
    assert batch_manager.resolve_batch_date(TODAY, datetime(2026, 1, 15, 14, 29)) == TODAY


async def _create_committed(db, batch_date, cutoff_time=None):
    batch = await batch_manager.get_or_create_batch(db, TENANT_ID, batch_date, cutoff_time)
    await db.commit()
    return batch


def test_get_or_create_batch_is_idempotent(run) -> None:
    first = run(lambda db: _create_committed(db, TODAY))
    second = run(lambda db: _create_committed(db, TODAY))

    assert first.id == second.id
    assert first.status == BatchStatus.OPEN.value
    assert first.cutoff_time == CUTOFF
    assert first.order_count == 0


def test_batches_are_per_tenant(run) -> None:
    ours = run(lambda db: _create_committed(db, TODAY))

    async def _other(db):
        batch = await batch_manager.get_or_create_batch(db, 2, TODAY)
        await db.commit()
        return batch

    theirs = run(_other)
    assert ours.id != theirs.id


def test_get_or_create_batch_recovers_from_creation_race(run, monkeypatch: pytest.MonkeyPatch) -> None:
    existing = run(lambda db: _create_committed(db, TODAY))

    real_lookup = batch_manager.get_batch_by_date
    calls = []

    async def stale_lookup(db, tenant_id, batch_date):
        # first lookup misses, as if the other request had not committed yet
        calls.append(batch_date)
        if len(calls) == 1:
            return None
        return await real_lookup(db, tenant_id, batch_date)

    monkeypatch.setattr(batch_manager, "get_batch_by_date", stale_lookup)

    recovered = run(lambda db: batch_manager.get_or_create_batch(db, TENANT_ID, TODAY))
    assert recovered.id == existing.id
    assert len(calls) == 2


def test_explicit_cutoff_is_stored(run) -> None:
    batch = run(lambda db: _create_committed(db, TODAY, time(12, 0)))
    assert batch.cutoff_time == time(12, 0)


def test_existing_batch_cutoff_decides_same_day_orders(run) -> None:
    run(lambda db: _create_committed(db, TODAY, time(12, 0)))

    now = datetime(2026, 1, 15, 13, 0)
    batch = run(lambda db: batch_manager.resolve_batch_for_order(db, TENANT_ID, TODAY, now))
    assert batch.batch_date == date(2026, 1, 16)


def test_get_batch_unknown_id_raises(run) -> None:
    with pytest.raises(NotFoundError):
        run(lambda db: batch_manager.get_batch(db, "missing", TENANT_ID))


def test_status_transitions() -> None:
    batch = RouteBatch(id="b1", batch_date=TODAY, status=BatchStatus.OPEN.value)

    with pytest.raises(InvalidTransitionError):
        batch_manager.mark_completed(batch)

    batch_manager.mark_optimized(batch)
    assert batch.status == BatchStatus.OPTIMIZED.value
    assert batch.optimized_at is not None

    # re-optimization keeps it optimized
    batch_manager.mark_optimized(batch)
    assert batch.status == BatchStatus.OPTIMIZED.value

    batch_manager.mark_completed(batch)
    assert batch.status == BatchStatus.COMPLETED.value
    assert batch.completed_at is not None

    with pytest.raises(InvalidTransitionError):
        batch_manager.mark_optimized(batch)


def test_list_batches_filters_by_status(run) -> None:
    run(lambda db: _create_committed(db, TODAY))
    run(lambda db: _create_committed(db, date(2026, 1, 16)))

    async def _optimize_first(db):
        batch = await batch_manager.get_batch_by_date(db, TENANT_ID, TODAY)
        batch_manager.mark_optimized(batch)
        await db.commit()

    run(_optimize_first)

    everything = run(lambda db: batch_manager.list_batches(db, TENANT_ID))
    assert [b.batch_date for b in everything] == [date(2026, 1, 16), TODAY]

    optimized = run(lambda db: batch_manager.list_batches(db, TENANT_ID, status="optimized"))
    assert [b.batch_date for b in optimized] == [TODAY]


def test_current_batch_date_follows_todays_batch_cutoff(run) -> None:
    run(lambda db: _create_committed(db, TODAY, time(12, 0)))
    now = datetime(2026, 1, 15, 13, 0)

    current = run(lambda db: batch_manager.resolve_current_batch_date(db, TENANT_ID, now))
    joined = run(lambda db: batch_manager.resolve_batch_for_order(db, TENANT_ID, TODAY, now))

    assert current == date(2026, 1, 16)
    assert joined.batch_date == current


def test_current_batch_date_uses_default_cutoff_without_a_batch(run) -> None:
    before = run(lambda db: batch_manager.resolve_current_batch_date(db, TENANT_ID, datetime(2026, 1, 15, 14, 29)))
    after = run(lambda db: batch_manager.resolve_current_batch_date(db, TENANT_ID, datetime(2026, 1, 15, 14, 31)))

    assert before == TODAY
    assert after == date(2026, 1, 16)


async def _batch_created_entries(db):
    result = await db.execute(select(ActivityLog).where(ActivityLog.action == "BATCH_CREATED"))
    return result.scalars().all()


def test_new_batch_logs_creation_once(run) -> None:
    async def _create(db):
        batch = await batch_manager.get_or_create_batch(db, TENANT_ID, TODAY, actor_id=ADMIN_ID)
        await db.commit()
        return batch

    batch = run(_create)
    run(_create)

    entries = run(_batch_created_entries)
    assert len(entries) == 1
    assert entries[0].actor_id == ADMIN_ID
    assert entries[0].details["batch_id"] == batch.id


def test_lost_creation_race_keeps_staged_work_and_logs_nothing(run, monkeypatch: pytest.MonkeyPatch) -> None:
    existing = run(lambda db: _create_committed(db, TODAY))
    assert len(run(_batch_created_entries)) == 1

    real_lookup = batch_manager.get_batch_by_date
    calls = []

    async def stale_lookup(db, tenant_id, batch_date):
        calls.append(batch_date)
        if len(calls) == 1:
            return None
        return await real_lookup(db, tenant_id, batch_date)

    monkeypatch.setattr(batch_manager, "get_batch_by_date", stale_lookup)

    async def _race(db):
        # work staged by the caller before the batch lookup
        db.add(Zone(id="zone-staged", name="Z", direction="north", base_address="HQ", tenant_id=TENANT_ID))
        await db.flush()
        batch = await batch_manager.get_or_create_batch(db, TENANT_ID, TODAY)
        await db.commit()
        return batch

    recovered = run(_race)
    assert recovered.id == existing.id

    staged = run(lambda db: db.get(Zone, "zone-staged"))
    assert staged is not None
    assert len(run(_batch_created_entries)) == 1
