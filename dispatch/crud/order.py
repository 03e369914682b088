from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatch.models.order import Order


async def get_order(db: AsyncSession, order_id: str, tenant_id: int):
    result = await db.execute(
        select(Order).where(Order.id == order_id, Order.tenant_id == tenant_id)
    )
    return result.scalar_one_or_none()


async def get_orders(db: AsyncSession, tenant_id: int, batch_id: str = None, zone_id: str = None):
    query = select(Order).where(Order.tenant_id == tenant_id)

    if batch_id:
        query = query.where(Order.batch_id == batch_id)
    if zone_id:
        query = query.where(Order.zone_id == zone_id)

    result = await db.execute(
        query.order_by(Order.zone_id, Order.route_sequence, Order.created_at)
    )
    return result.scalars().all()
