"""
Route Batch Routes

Admin endpoints for batches and route optimization
"""
from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from dispatch.auth.dependencies import get_current_admin_user
from dispatch.crud import route as route_crud
from dispatch.db import async_session, get_db
from dispatch.models.user import User
from dispatch.schemas.batch import OptimizationJobRead, RouteBatchCreate, RouteBatchRead
from dispatch.schemas.route import OptimizedRouteRead
from dispatch.services.routing import batch_manager, jobs
from dispatch.services.routing.route_optimizer import optimize_batch
from dispatch.api.errors import service_errors
from dispatch.utils.tenant import get_current_tenant_id

router = APIRouter(prefix="/batches", tags=["Route Batches"])


def get_session_factory():
    return async_session


@router.get("/", response_model=List[RouteBatchRead])
async def list_batches(
    request: Request,
    status: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    return await batch_manager.list_batches(db, tenant_id, status=status)


@router.post("/", response_model=RouteBatchRead)
async def create_batch(
    request: Request,
    payload: RouteBatchCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    """Create the batch for a date, or return the one that already exists"""
    tenant_id = get_current_tenant_id(request)
    batch = await batch_manager.get_or_create_batch(
        db, tenant_id, payload.batch_date, payload.cutoff_time, actor_id=user.id
    )
    await db.commit()
    return batch


@router.get("/current", response_model=RouteBatchRead)
async def current_batch(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    """Batch a same-day order placed now would join"""
    tenant_id = get_current_tenant_id(request)
    batch_date = await batch_manager.resolve_current_batch_date(db, tenant_id)
    batch = await batch_manager.get_batch_by_date(db, tenant_id, batch_date)
    if not batch:
        raise HTTPException(status_code=404, detail=f"No batch yet for {batch_date}")
    return batch


@router.get("/jobs/{job_id}", response_model=OptimizationJobRead)
async def optimization_job_status(
    request: Request,
    job_id: str,
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    job = jobs.get_job(job_id)
    if not job or job.tenant_id != tenant_id:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.get("/{batch_id}", response_model=RouteBatchRead)
async def get_batch(
    request: Request,
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    with service_errors():
        return await batch_manager.get_batch(db, batch_id, tenant_id)


@router.get("/{batch_id}/routes", response_model=List[OptimizedRouteRead])
async def batch_routes(
    request: Request,
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    with service_errors():
        await batch_manager.get_batch(db, batch_id, tenant_id)
    return await route_crud.get_routes_by_batch(db, batch_id, tenant_id)


@router.post("/{batch_id}/optimize", response_model=List[OptimizedRouteRead])
async def optimize(
    request: Request,
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    """Group the batch's orders by zone and build one route per zone"""
    tenant_id = get_current_tenant_id(request)
    with service_errors():
        return await optimize_batch(db, batch_id, tenant_id, actor_id=user.id)


@router.post("/by-date/{batch_date}/optimize", response_model=List[OptimizedRouteRead])
async def optimize_by_date(
    request: Request,
    batch_date: date,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    tenant_id = get_current_tenant_id(request)
    batch = await batch_manager.get_batch_by_date(db, tenant_id, batch_date)
    if not batch:
        raise HTTPException(status_code=404, detail=f"No batch for {batch_date}")
    with service_errors():
        return await optimize_batch(db, batch.id, tenant_id, actor_id=user.id)


@router.post("/{batch_id}/optimize/background", response_model=OptimizationJobRead, status_code=202)
async def optimize_in_background(
    request: Request,
    batch_id: str,
    background_tasks: BackgroundTasks,
    session_factory=Depends(get_session_factory),
    user: User = Depends(get_current_admin_user)
):
    """Queue optimization for a large batch; poll /batches/jobs/{job_id}"""
    tenant_id = get_current_tenant_id(request)

    # Short-lived session: nothing stays open while the job writes
    async with session_factory() as db:
        with service_errors():
            await batch_manager.get_batch(db, batch_id, tenant_id)

    return jobs.enqueue_optimization(
        background_tasks,
        batch_id,
        tenant_id,
        session_factory,
        actor_id=user.id,
    )
