"""
Driver-Zone Assignment

Binds drivers to zones (one zone per driver, overwrite on reassignment) and
hands optimized routes to drivers. Route completion rolls up to the batch:
once every route of a batch is completed the batch is completed too.
"""
from typing import Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from dispatch.crud import driver as driver_crud
from dispatch.crud import route as route_crud
from dispatch.crud import zone as zone_crud
from dispatch.crud.activity import log_activity
from dispatch.models.driver import Driver
from dispatch.models.optimized_route import OptimizedRoute, RouteStatus
from dispatch.models.route_batch import RouteBatch
from dispatch.services.routing.batch_manager import get_batch, mark_completed
from dispatch.services.routing.errors import InvalidTransitionError, NotFoundError
from dispatch.utils.timezones import utcnow_naive

log = logging.getLogger(__name__)

OPEN_ROUTE_STATUSES = (RouteStatus.ASSIGNED.value, RouteStatus.IN_PROGRESS.value)


async def _require_driver(db: AsyncSession, driver_id: str, tenant_id: int) -> Driver:
    driver = await driver_crud.get_driver(db, driver_id, tenant_id)
    if not driver:
        raise NotFoundError(f"Driver {driver_id} not found")
    return driver


async def _require_route(db: AsyncSession, route_id: str, tenant_id: int) -> OptimizedRoute:
    route = await route_crud.get_route(db, route_id, tenant_id)
    if not route:
        raise NotFoundError(f"Route {route_id} not found")
    return route


async def assign_driver_to_zone(
    db: AsyncSession,
    tenant_id: int,
    driver_id: str,
    zone_id: Optional[str],
    actor_id: str = None,
) -> Driver:
    """Set the driver's zone, replacing any previous one. zone_id=None clears it."""
    driver = await _require_driver(db, driver_id, tenant_id)

    if zone_id is not None:
        zone = await zone_crud.get_zone(db, zone_id, tenant_id)
        if not zone:
            raise NotFoundError(f"Zone {zone_id} not found")
        if not zone.is_active:
            raise ValueError(f"Zone {zone.name} is inactive")

    previous_zone_id = driver.assigned_zone_id
    driver.assigned_zone_id = zone_id

    await log_activity(
        db,
        tenant_id,
        "ZONE_ASSIGNED",
        f"Driver {driver.name} assigned to zone {zone_id or '-'}",
        actor_id=actor_id,
        details={"driver_id": driver.id, "zone_id": zone_id, "previous_zone_id": previous_zone_id},
    )
    await db.commit()
    await db.refresh(driver)

    log.info("zone assigned: tenant=%s driver=%s zone=%s (was %s)", tenant_id, driver.id, zone_id, previous_zone_id)
    return driver


async def update_driver_status(
    db: AsyncSession,
    tenant_id: int,
    driver_id: str,
    status: str,
    is_available: Optional[bool] = None,
    actor_id: str = None,
) -> Driver:
    driver = await _require_driver(db, driver_id, tenant_id)

    previous_status = driver.status
    driver.status = status
    if is_available is not None:
        driver.is_available = is_available

    await log_activity(
        db,
        tenant_id,
        "DRIVER_STATUS_UPDATED",
        f"Driver {driver.name} is now {status}",
        actor_id=actor_id,
        details={"driver_id": driver.id, "status": status, "previous_status": previous_status},
    )
    await db.commit()
    await db.refresh(driver)
    return driver


async def drivers_for_zone(db: AsyncSession, tenant_id: int, zone_id: str):
    zone = await zone_crud.get_zone(db, zone_id, tenant_id)
    if not zone:
        raise NotFoundError(f"Zone {zone_id} not found")
    return await driver_crud.get_drivers(db, tenant_id, zone_id=zone_id)


async def _warn_if_double_booked(db: AsyncSession, route: OptimizedRoute, driver: Driver):
    # Not rejected: a driver may hold routes in several zones of the same day
    batch = await db.get(RouteBatch, route.batch_id)
    result = await db.execute(
        select(OptimizedRoute.id)
        .join(RouteBatch, RouteBatch.id == OptimizedRoute.batch_id)
        .where(
            OptimizedRoute.driver_id == driver.id,
            OptimizedRoute.id != route.id,
            OptimizedRoute.status.in_(OPEN_ROUTE_STATUSES),
            RouteBatch.batch_date == batch.batch_date,
        )
    )
    others = result.scalars().all()
    if others:
        log.warning(
            "driver %s already holds %s open route(s) on %s: %s",
            driver.id, len(others), batch.batch_date, ", ".join(others),
        )


async def assign_route_to_driver(
    db: AsyncSession,
    tenant_id: int,
    route_id: str,
    driver_id: str,
    actor_id: str = None,
) -> OptimizedRoute:
    route = await _require_route(db, route_id, tenant_id)
    if route.status != RouteStatus.PENDING.value:
        raise InvalidTransitionError(f"Route {route_id} is {route.status}; only pending routes can be assigned")

    driver = await _require_driver(db, driver_id, tenant_id)
    await _warn_if_double_booked(db, route, driver)

    route.driver_id = driver.id
    route.status = RouteStatus.ASSIGNED.value
    route.assigned_at = utcnow_naive()

    await log_activity(
        db,
        tenant_id,
        "ROUTE_ASSIGNED",
        f"Route {route.id} assigned to driver {driver.name}",
        actor_id=actor_id,
        details={"route_id": route.id, "driver_id": driver.id, "batch_id": route.batch_id},
    )
    await db.commit()
    await db.refresh(route)

    log.info("route assigned: tenant=%s route=%s driver=%s", tenant_id, route.id, driver.id)
    return route


async def start_route(db: AsyncSession, tenant_id: int, route_id: str) -> OptimizedRoute:
    """Mark route as in_progress"""
    route = await _require_route(db, route_id, tenant_id)
    if route.status != RouteStatus.ASSIGNED.value:
        raise InvalidTransitionError(f"Route {route_id} is {route.status}; only assigned routes can start")

    route.status = RouteStatus.IN_PROGRESS.value
    route.started_at = utcnow_naive()
    await db.commit()
    await db.refresh(route)
    return route


async def complete_route(db: AsyncSession, tenant_id: int, route_id: str, actor_id: str = None) -> OptimizedRoute:
    """Mark route as completed, completing the batch when it was the last open one"""
    route = await _require_route(db, route_id, tenant_id)
    if route.status != RouteStatus.IN_PROGRESS.value:
        raise InvalidTransitionError(f"Route {route_id} is {route.status}; only in-progress routes can complete")

    route.status = RouteStatus.COMPLETED.value
    route.completed_at = utcnow_naive()
    await db.flush()

    batch = await get_batch(db, route.batch_id, tenant_id)
    siblings = await route_crud.get_routes_by_batch(db, batch.id, tenant_id)
    if all(r.status == RouteStatus.COMPLETED.value for r in siblings):
        mark_completed(batch)
        log.info("batch completed: tenant=%s batch=%s", tenant_id, batch.id)

    await log_activity(
        db,
        tenant_id,
        "ROUTE_COMPLETED",
        f"Route {route.id} completed",
        actor_id=actor_id,
        details={"route_id": route.id, "batch_id": batch.id, "batch_status": batch.status},
    )
    await db.commit()
    await db.refresh(route)
    return route
