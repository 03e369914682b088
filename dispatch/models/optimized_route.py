from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Numeric, JSON, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from dispatch.models.base import Base
import enum
import uuid


class RouteStatus(str, enum.Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class OptimizedRoute(Base):
    """Ordered deliveries for one zone within one batch"""
    __tablename__ = "optimized_routes"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    batch_id = Column(String, ForeignKey("route_batches.id", ondelete="CASCADE"), nullable=False)
    zone_id = Column(String, ForeignKey("zones.id"), nullable=False)
    driver_id = Column(String, ForeignKey("drivers.id"), nullable=True)
    route_data = Column(JSON, nullable=False, default=list)  # [{order_id, sequence, address}]
    estimated_distance = Column(Numeric(10, 2), nullable=True)  # miles
    estimated_time = Column(Integer, nullable=True)  # minutes
    status = Column(String, default=RouteStatus.PENDING.value, nullable=False)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    assigned_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    batch = relationship("RouteBatch", back_populates="optimized_routes")
    zone = relationship("Zone", back_populates="optimized_routes")
    driver = relationship("Driver", back_populates="routes")

    __table_args__ = (
        UniqueConstraint("batch_id", "zone_id", name="uq_optimized_routes_batch_zone"),
        Index("idx_optimized_routes_driver", "driver_id"),
        Index("idx_optimized_routes_tenant", "tenant_id"),
    )
