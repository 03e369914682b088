from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from dispatch.models.activity_log import ActivityLog
import uuid


async def log_activity(
    db: AsyncSession,
    tenant_id: int,
    action: str,
    description: str,
    actor_id: str = None,
    details: dict = None,
):
    """Stage an activity entry; committed with the caller's transaction"""
    entry = ActivityLog(
        id=str(uuid.uuid4()),
        tenant_id=tenant_id,
        actor_id=actor_id,
        action=action,
        description=description,
        details=details or {},
    )
    db.add(entry)
    return entry


async def get_recent_activity(db: AsyncSession, tenant_id: int, limit: int = 20):
    result = await db.execute(
        select(ActivityLog)
        .where(ActivityLog.tenant_id == tenant_id)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
    )
    return result.scalars().all()
