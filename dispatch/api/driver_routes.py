from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from dispatch.auth.dependencies import DRIVER_ROLES, get_current_admin_user, get_current_user
from dispatch.crud import driver as driver_crud
from dispatch.crud import route as route_crud
from dispatch.db import get_db
from dispatch.models.user import User
from dispatch.schemas.driver import DriverCreate, DriverRead, DriverStatusUpdate, ZoneAssignment
from dispatch.schemas.route import OptimizedRouteRead
from dispatch.services.routing.assignment import assign_driver_to_zone, update_driver_status
from dispatch.api.errors import service_errors
from dispatch.utils.tenant import get_current_tenant_id

router = APIRouter(prefix="/drivers", tags=["Drivers"])


@router.get("/", response_model=List[DriverRead])
async def list_drivers(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    return await driver_crud.get_drivers(db, tenant_id)


@router.get("/available", response_model=List[DriverRead])
async def available_drivers(
    request: Request,
    zone_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    """Online drivers free to take a route, optionally for one zone"""
    tenant_id = get_current_tenant_id(request)
    return await driver_crud.get_available_drivers(db, tenant_id, zone_id=zone_id)


@router.post("/", response_model=DriverRead)
async def create_driver(
    request: Request,
    driver: DriverCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    return await driver_crud.create_driver(db, driver, tenant_id)


@router.patch("/{driver_id}/status", response_model=DriverRead)
async def set_driver_status(
    request: Request,
    driver_id: str,
    payload: DriverStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Set a driver's duty status; drivers and super admins only"""
    if user.role not in DRIVER_ROLES:
        raise HTTPException(status_code=403, detail="Access denied")

    tenant_id = get_current_tenant_id(request)
    with service_errors():
        return await update_driver_status(
            db, tenant_id, driver_id, payload.status, payload.is_available, actor_id=user.id
        )


@router.post("/{driver_id}/assign-zone", response_model=DriverRead)
async def assign_zone(
    request: Request,
    driver_id: str,
    payload: ZoneAssignment,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    """Assign a driver to a zone, replacing any earlier assignment"""
    tenant_id = get_current_tenant_id(request)
    with service_errors():
        return await assign_driver_to_zone(db, tenant_id, driver_id, payload.zone_id, actor_id=user.id)


@router.get("/{driver_id}/routes", response_model=List[OptimizedRouteRead])
async def driver_routes(
    request: Request,
    driver_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    return await route_crud.get_routes_for_driver(db, driver_id, tenant_id)
