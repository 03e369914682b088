from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from dispatch.auth.dependencies import get_current_user
from dispatch.crud import order as order_crud
from dispatch.db import get_db
from dispatch.models.user import User
from dispatch.schemas.order import OrderCreate, OrderRead, OrderVoid
from dispatch.services import orders as order_service
from dispatch.api.errors import service_errors
from dispatch.utils.tenant import get_current_tenant_id

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/", response_model=OrderRead)
async def create_order(
    request: Request,
    draft: OrderCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create an order; batch and zone are stamped server-side"""
    tenant_id = get_current_tenant_id(request)
    return await order_service.create_order(db, tenant_id, draft, created_by=user.id)


@router.get("/", response_model=List[OrderRead])
async def list_orders(
    request: Request,
    batch_id: Optional[str] = None,
    zone_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    tenant_id = get_current_tenant_id(request)
    return await order_crud.get_orders(db, tenant_id, batch_id=batch_id, zone_id=zone_id)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    request: Request,
    order_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    tenant_id = get_current_tenant_id(request)
    order = await order_crud.get_order(db, order_id, tenant_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/{order_id}/void", response_model=OrderRead)
async def void_order(
    request: Request,
    order_id: str,
    payload: OrderVoid,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Void an order and release it from its batch"""
    if user.role not in ("client", "super_admin"):
        raise HTTPException(status_code=403, detail="Access denied")

    tenant_id = get_current_tenant_id(request)
    with service_errors():
        return await order_service.void_order(db, tenant_id, order_id, payload.void_reason, voided_by=user.id)
