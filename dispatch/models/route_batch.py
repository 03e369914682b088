from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Date, Time, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, time
from dispatch.models.base import Base
import enum
import uuid


class BatchStatus(str, enum.Enum):
    OPEN = "open"            # accepting orders
    OPTIMIZED = "optimized"  # routes generated
    COMPLETED = "completed"  # every route delivered


class RouteBatch(Base):
    """One batch of orders per calendar date, closed off by a cutoff time"""
    __tablename__ = "route_batches"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    batch_date = Column(Date, nullable=False)
    cutoff_time = Column(Time, nullable=False, default=time(14, 30, 0))
    status = Column(String, default=BatchStatus.OPEN.value, nullable=False)
    order_count = Column(Integer, default=0, nullable=False)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    optimized_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    tenant = relationship("Tenant", back_populates="route_batches")
    orders = relationship("Order", back_populates="batch")
    optimized_routes = relationship(
        "OptimizedRoute",
        back_populates="batch",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "batch_date", name="uq_route_batches_tenant_date"),
        Index("idx_route_batches_status", "tenant_id", "status"),
    )
