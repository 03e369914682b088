"""
Optimized Route Routes

Handing routes to drivers and tracking them to completion
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.auth.dependencies import DRIVER_ROLES, get_current_admin_user, get_current_user
from dispatch.db import get_db
from dispatch.models.user import User
from dispatch.schemas.route import OptimizedRouteRead, RouteAssignment
from dispatch.services.routing import assignment
from dispatch.api.errors import service_errors
from dispatch.utils.tenant import get_current_tenant_id

router = APIRouter(prefix="/routes", tags=["Optimized Routes"])


@router.post("/{route_id}/assign", response_model=OptimizedRouteRead)
async def assign_route(
    request: Request,
    route_id: str,
    payload: RouteAssignment,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    with service_errors():
        return await assignment.assign_route_to_driver(db, tenant_id, route_id, payload.driver_id, actor_id=user.id)


@router.post("/{route_id}/start", response_model=OptimizedRouteRead)
async def start_route(
    request: Request,
    route_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Mark route as in_progress"""
    if user.role not in DRIVER_ROLES:
        raise HTTPException(status_code=403, detail="Access denied")

    tenant_id = get_current_tenant_id(request)
    with service_errors():
        return await assignment.start_route(db, tenant_id, route_id)


@router.post("/{route_id}/complete", response_model=OptimizedRouteRead)
async def complete_route(
    request: Request,
    route_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    if user.role not in DRIVER_ROLES:
        raise HTTPException(status_code=403, detail="Access denied")

    tenant_id = get_current_tenant_id(request)
    with service_errors():
        return await assignment.complete_route(db, tenant_id, route_id, actor_id=user.id)
