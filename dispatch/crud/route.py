from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatch.models.optimized_route import OptimizedRoute
from dispatch.models.zone import Zone


async def get_route(db: AsyncSession, route_id: str, tenant_id: int):
    result = await db.execute(
        select(OptimizedRoute).where(
            OptimizedRoute.id == route_id,
            OptimizedRoute.tenant_id == tenant_id
        )
    )
    return result.scalar_one_or_none()


async def get_routes_by_batch(db: AsyncSession, batch_id: str, tenant_id: int):
    """Routes for a batch, in zone name order"""
    result = await db.execute(
        select(OptimizedRoute)
        .join(Zone, Zone.id == OptimizedRoute.zone_id)
        .where(
            OptimizedRoute.batch_id == batch_id,
            OptimizedRoute.tenant_id == tenant_id
        )
        .order_by(Zone.name)
    )
    return result.scalars().all()


async def get_routes_for_driver(db: AsyncSession, driver_id: str, tenant_id: int, statuses=None):
    query = select(OptimizedRoute).where(
        OptimizedRoute.driver_id == driver_id,
        OptimizedRoute.tenant_id == tenant_id
    )
    if statuses:
        query = query.where(OptimizedRoute.status.in_(list(statuses)))

    result = await db.execute(query.order_by(OptimizedRoute.created_at))
    return result.scalars().all()
