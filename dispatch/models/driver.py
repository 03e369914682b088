from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from dispatch.models.base import Base
import uuid


class Driver(Base):
    """Driver profile; a driver serves at most one zone at a time"""
    __tablename__ = "drivers"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    vehicle_type = Column(String, nullable=True)  # van, truck, bike
    status = Column(String, default="offline", nullable=False)  # online, offline, on_delivery, break
    is_available = Column(Boolean, default=True, nullable=False)
    assigned_zone_id = Column(String, ForeignKey("zones.id"), nullable=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tenant = relationship("Tenant", back_populates="drivers")
    assigned_zone = relationship("Zone", back_populates="drivers")
    routes = relationship("OptimizedRoute", back_populates="driver")

    __table_args__ = (
        Index("idx_drivers_tenant", "tenant_id"),
        Index("idx_drivers_zone", "assigned_zone_id"),
    )
