from sqlalchemy import Column, String, Integer, ForeignKey, Text, DateTime, JSON, Index
from datetime import datetime
from dispatch.models.base import Base
import uuid


class ActivityLog(Base):
    """Append-only history of dispatch actions (zone assignments, optimizations, ...)"""
    __tablename__ = "activity_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    actor_id = Column(String, ForeignKey("users.id"), nullable=True)
    action = Column(String, nullable=False)  # ORDER_CREATED, ZONE_ASSIGNED, ...
    description = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_activity_logs_tenant", "tenant_id", "created_at"),
    )
