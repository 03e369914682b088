from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatch.models.zone import Zone
from dispatch.schemas.zone import ZoneCreate, ZoneUpdate
import uuid


async def create_zone(db: AsyncSession, zone: ZoneCreate, tenant_id: int):
    new_zone = Zone(
        id=str(uuid.uuid4()),
        name=zone.name,
        direction=zone.direction,
        max_distance=zone.max_distance,
        base_address=zone.base_address,
        is_active=zone.is_active,
        tenant_id=tenant_id
    )
    db.add(new_zone)
    await db.commit()
    await db.refresh(new_zone)
    return new_zone


async def get_zones(db: AsyncSession, tenant_id: int, active_only: bool = False):
    """Get all zones for a tenant"""
    query = select(Zone).where(Zone.tenant_id == tenant_id)

    if active_only:
        query = query.where(Zone.is_active == True)

    result = await db.execute(query.order_by(Zone.name))
    return result.scalars().all()


async def get_zone(db: AsyncSession, zone_id: str, tenant_id: int):
    result = await db.execute(
        select(Zone).where(Zone.id == zone_id, Zone.tenant_id == tenant_id)
    )
    return result.scalar_one_or_none()


async def update_zone(db: AsyncSession, zone_id: str, tenant_id: int, updates: ZoneUpdate):
    """Update a zone; zones are deactivated, never deleted"""
    zone = await get_zone(db, zone_id, tenant_id)
    if not zone:
        return None

    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(zone, key, value)

    await db.commit()
    await db.refresh(zone)
    return zone
