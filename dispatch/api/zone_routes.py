from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from dispatch.auth.dependencies import get_current_admin_user
from dispatch.crud import zone as zone_crud
from dispatch.db import get_db
from dispatch.models.user import User
from dispatch.schemas.driver import DriverRead
from dispatch.schemas.zone import ZoneCreate, ZoneRead, ZoneUpdate
from dispatch.services.routing.assignment import drivers_for_zone
from dispatch.api.errors import service_errors
from dispatch.utils.tenant import get_current_tenant_id

router = APIRouter(prefix="/zones", tags=["Zones"])


@router.get("/", response_model=List[ZoneRead])
async def list_zones(
    request: Request,
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    return await zone_crud.get_zones(db, tenant_id, active_only)


@router.post("/", response_model=ZoneRead)
async def create_zone(
    request: Request,
    zone: ZoneCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    try:
        return await zone_crud.create_zone(db, zone, tenant_id)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Zone '{zone.name}' already exists")


@router.patch("/{zone_id}", response_model=ZoneRead)
async def update_zone(
    request: Request,
    zone_id: str,
    updates: ZoneUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    """Update or deactivate a zone"""
    tenant_id = get_current_tenant_id(request)
    try:
        zone = await zone_crud.update_zone(db, zone_id, tenant_id, updates)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Zone '{updates.name}' already exists")
    if not zone:
        raise HTTPException(status_code=404, detail="Zone not found")
    return zone


@router.get("/{zone_id}/drivers", response_model=List[DriverRead])
async def zone_drivers(
    request: Request,
    zone_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    with service_errors():
        return await drivers_for_zone(db, tenant_id, zone_id)
