from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from dispatch.auth.dependencies import get_current_admin_user
from dispatch.crud.activity import get_recent_activity
from dispatch.db import get_db
from dispatch.models.user import User
from dispatch.schemas.activity import ActivityRead
from dispatch.utils.tenant import get_current_tenant_id

router = APIRouter(prefix="/activity", tags=["Activity"])


@router.get("/", response_model=List[ActivityRead])
async def recent_activity(
    request: Request,
    limit: int = Query(default=20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_admin_user)
):
    """Most recent dispatch activity, newest first"""
    tenant_id = get_current_tenant_id(request)
    return await get_recent_activity(db, tenant_id, limit=limit)
