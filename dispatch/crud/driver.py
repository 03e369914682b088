from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatch.models.driver import Driver
from dispatch.schemas.driver import DriverCreate
import uuid


async def create_driver(db: AsyncSession, driver: DriverCreate, tenant_id: int):
    new_driver = Driver(
        id=str(uuid.uuid4()),
        user_id=driver.user_id,
        name=driver.name,
        phone=driver.phone,
        vehicle_type=driver.vehicle_type,
        status=driver.status,
        is_available=driver.is_available,
        tenant_id=tenant_id
    )
    db.add(new_driver)
    await db.commit()
    await db.refresh(new_driver)
    return new_driver


async def get_drivers(db: AsyncSession, tenant_id: int, zone_id: str = None):
    query = select(Driver).where(Driver.tenant_id == tenant_id)

    if zone_id:
        query = query.where(Driver.assigned_zone_id == zone_id)

    result = await db.execute(query.order_by(Driver.name))
    return result.scalars().all()


async def get_driver(db: AsyncSession, driver_id: str, tenant_id: int):
    result = await db.execute(
        select(Driver).where(Driver.id == driver_id, Driver.tenant_id == tenant_id)
    )
    return result.scalar_one_or_none()


async def get_available_drivers(db: AsyncSession, tenant_id: int, zone_id: str = None):
    """Drivers that are online and free to take a route"""
    query = select(Driver).where(
        Driver.tenant_id == tenant_id,
        Driver.status == "online",
        Driver.is_available == True
    )

    if zone_id:
        query = query.where(Driver.assigned_zone_id == zone_id)

    result = await db.execute(query.order_by(Driver.name))
    return result.scalars().all()
