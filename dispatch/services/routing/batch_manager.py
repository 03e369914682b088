"""
Batch Manager

Owns route batches: one per tenant per calendar date, each closed off by a
cutoff time. Decides which batch a new order joins and moves batches through
open -> optimized -> completed.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional
from uuid import uuid4
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from dispatch.core.config import settings
from dispatch.crud.activity import log_activity
from dispatch.models.route_batch import RouteBatch, BatchStatus
from dispatch.services.routing.errors import InvalidTransitionError, NotFoundError
from dispatch.utils.timezones import to_local, utcnow_naive

log = logging.getLogger(__name__)


def resolve_batch_date(
    requested_pickup_date: date,
    now: Optional[datetime] = None,
    cutoff: Optional[time] = None,
) -> date:
    """
    Pick the batch date for an order.

    The target is the requested pickup date. A same-day order placed after the
    cutoff rolls to the next calendar day; any other date is left alone.
    """
    cutoff = cutoff or settings.default_cutoff_time
    local = to_local(now)

    if requested_pickup_date == local.date() and local.time() > cutoff:
        return requested_pickup_date + timedelta(days=1)
    return requested_pickup_date


async def get_batch(db: AsyncSession, batch_id: str, tenant_id: int) -> RouteBatch:
    result = await db.execute(
        select(RouteBatch).where(
            RouteBatch.id == batch_id,
            RouteBatch.tenant_id == tenant_id
        )
    )
    batch = result.scalar_one_or_none()
    if not batch:
        raise NotFoundError(f"Batch {batch_id} not found")
    return batch


async def get_batch_by_date(db: AsyncSession, tenant_id: int, batch_date: date) -> Optional[RouteBatch]:
    result = await db.execute(
        select(RouteBatch).where(
            RouteBatch.tenant_id == tenant_id,
            RouteBatch.batch_date == batch_date
        )
    )
    return result.scalar_one_or_none()


async def list_batches(db: AsyncSession, tenant_id: int, status: Optional[str] = None):
    query = select(RouteBatch).where(RouteBatch.tenant_id == tenant_id)
    if status:
        query = query.where(RouteBatch.status == status)

    result = await db.execute(query.order_by(RouteBatch.batch_date.desc()))
    return result.scalars().all()


async def get_or_create_batch(
    db: AsyncSession,
    tenant_id: int,
    batch_date: date,
    cutoff_time: Optional[time] = None,
    actor_id: str = None,
) -> RouteBatch:
    # Idempotent: if the date already has a batch, just return it
    existing = await get_batch_by_date(db, tenant_id, batch_date)
    if existing:
        return existing

    batch = RouteBatch(
        id=str(uuid4()),
        tenant_id=tenant_id,
        batch_date=batch_date,
        cutoff_time=cutoff_time or settings.default_cutoff_time,
        status=BatchStatus.OPEN.value,
        order_count=0,
    )

    # Savepoint: losing the race must not discard what the caller has staged
    try:
        async with db.begin_nested():
            db.add(batch)
    except IntegrityError:
        # another request created the same date first
        existing = await get_batch_by_date(db, tenant_id, batch_date)
        if existing:
            log.info("batch create idempotent hit: tenant=%s date=%s", tenant_id, batch_date)
            return existing
        raise

    await log_activity(
        db,
        tenant_id,
        "BATCH_CREATED",
        f"Created batch {batch.batch_date}",
        actor_id=actor_id,
        details={"batch_id": batch.id, "cutoff_time": str(batch.cutoff_time)},
    )
    log.info("batch created: tenant=%s date=%s batch=%s", tenant_id, batch_date, batch.id)
    return batch


async def resolve_target_batch_date(
    db: AsyncSession,
    tenant_id: int,
    requested_pickup_date: date,
    now: Optional[datetime] = None,
) -> date:
    """
    Batch date for an order placed now.

    A same-day order is held against today's batch cutoff when that batch
    exists, otherwise against the default cutoff.
    """
    cutoff = None
    if requested_pickup_date == to_local(now).date():
        todays = await get_batch_by_date(db, tenant_id, requested_pickup_date)
        if todays:
            cutoff = todays.cutoff_time
    return resolve_batch_date(requested_pickup_date, now, cutoff)


async def resolve_current_batch_date(db: AsyncSession, tenant_id: int, now: Optional[datetime] = None) -> date:
    """Batch a same-day order placed now would join"""
    return await resolve_target_batch_date(db, tenant_id, to_local(now).date(), now)


async def resolve_batch_for_order(
    db: AsyncSession,
    tenant_id: int,
    requested_pickup_date: date,
    now: Optional[datetime] = None,
    actor_id: str = None,
) -> RouteBatch:
    """Find (or lazily create) the batch a new order belongs to"""
    batch_date = await resolve_target_batch_date(db, tenant_id, requested_pickup_date, now)
    if batch_date != requested_pickup_date:
        log.info(
            "order for %s placed after cutoff, deferred to %s (tenant=%s)",
            requested_pickup_date, batch_date, tenant_id,
        )

    batch = await get_or_create_batch(db, tenant_id, batch_date, actor_id=actor_id)
    if batch.status != BatchStatus.OPEN.value:
        log.warning("order added to %s batch %s (%s)", batch.status, batch.id, batch.batch_date)
    return batch


async def adjust_order_count(db: AsyncSession, batch: RouteBatch, delta: int) -> RouteBatch:
    # SQL-side increment so concurrent orders don't lose updates
    batch.order_count = RouteBatch.order_count + delta
    await db.flush()
    await db.refresh(batch, attribute_names=["order_count"])
    return batch


def mark_optimized(batch: RouteBatch) -> RouteBatch:
    if batch.status == BatchStatus.COMPLETED.value:
        raise InvalidTransitionError(f"Batch {batch.id} is completed and cannot be re-optimized")

    batch.status = BatchStatus.OPTIMIZED.value
    batch.optimized_at = utcnow_naive()
    return batch


def mark_completed(batch: RouteBatch) -> RouteBatch:
    if batch.status != BatchStatus.OPTIMIZED.value:
        raise InvalidTransitionError(f"Batch {batch.id} is {batch.status}; only optimized batches complete")

    batch.status = BatchStatus.COMPLETED.value
    batch.completed_at = utcnow_naive()
    return batch
