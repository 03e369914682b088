"""
Order intake for the dispatch core.

Creating an order stamps its batch (cutoff rule) and zone (state partition)
before it is persisted; voiding detaches it from its batch.
"""
from datetime import datetime
from typing import Optional
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.crud.activity import log_activity
from dispatch.crud.order import get_order
from dispatch.models.order import Order
from dispatch.models.route_batch import RouteBatch
from dispatch.schemas.order import OrderCreate
from dispatch.services.routing.batch_manager import adjust_order_count, resolve_batch_for_order
from dispatch.services.routing.errors import InvalidTransitionError, NotFoundError
from dispatch.services.routing.zone_classifier import classify, load_zone_directory
from dispatch.utils.timezones import utcnow_naive

log = logging.getLogger(__name__)


def new_order_number(pickup_date) -> str:
    return f"SX-{pickup_date:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


async def create_order(
    db: AsyncSession,
    tenant_id: int,
    draft: OrderCreate,
    created_by: str = None,
    now: Optional[datetime] = None,
) -> Order:
    batch = await resolve_batch_for_order(db, tenant_id, draft.pickup_date, now, actor_id=created_by)

    coordinates = draft.delivery_coordinates.model_dump() if draft.delivery_coordinates else None
    directory = await load_zone_directory(db, tenant_id)
    zone_id = classify(draft.delivery_state, coordinates, directory=directory)
    if zone_id is None:
        log.warning("no zone for state %s (tenant=%s has no active zones)", draft.delivery_state, tenant_id)

    order = Order(
        id=str(uuid.uuid4()),
        order_number=new_order_number(draft.pickup_date),
        status="pending",
        customer_name=draft.customer_name,
        delivery_line1=draft.delivery_line1,
        delivery_city=draft.delivery_city,
        delivery_state=draft.delivery_state,
        delivery_zip=draft.delivery_zip,
        delivery_lat=coordinates["lat"] if coordinates else None,
        delivery_lng=coordinates["lng"] if coordinates else None,
        pickup_date=draft.pickup_date,
        batch_id=batch.id,
        zone_id=zone_id,
        created_by=created_by,
        tenant_id=tenant_id,
    )
    db.add(order)
    await adjust_order_count(db, batch, 1)

    await log_activity(
        db,
        tenant_id,
        "ORDER_CREATED",
        f"Created order {order.order_number}",
        actor_id=created_by,
        details={"order_id": order.id, "batch_id": batch.id, "zone_id": zone_id},
    )
    await db.commit()
    await db.refresh(order)

    log.info(
        "order created: tenant=%s order=%s batch=%s zone=%s",
        tenant_id, order.order_number, batch.batch_date, zone_id,
    )
    return order


async def void_order(
    db: AsyncSession,
    tenant_id: int,
    order_id: str,
    reason: str,
    voided_by: str = None,
) -> Order:
    order = await get_order(db, order_id, tenant_id)
    if not order:
        raise NotFoundError(f"Order {order_id} not found")
    if order.voided_at is not None:
        raise InvalidTransitionError(f"Order {order.order_number} is already voided")

    batch_id = order.batch_id
    if batch_id:
        batch = await db.get(RouteBatch, batch_id)
        await adjust_order_count(db, batch, -1)

    order.status = "voided"
    order.voided_at = utcnow_naive()
    order.void_reason = reason
    order.batch_id = None
    order.route_sequence = None

    await log_activity(
        db,
        tenant_id,
        "ORDER_VOIDED",
        f"Order {order.order_number} was voided",
        actor_id=voided_by,
        details={"order_id": order.id, "batch_id": batch_id, "reason": reason},
    )
    await db.commit()
    await db.refresh(order)
    return order
