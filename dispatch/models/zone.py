from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Text, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from dispatch.models.base import Base
import enum
import uuid


class ZoneDirection(str, enum.Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


class Zone(Base):
    """Coarse delivery zones (A, B, C, D) keyed by direction"""
    __tablename__ = "zones"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    direction = Column(String, nullable=False)  # north, south, east, west
    max_distance = Column(Integer, default=300, nullable=False)  # miles
    base_address = Column(Text, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    tenant = relationship("Tenant", back_populates="zones")
    drivers = relationship("Driver", back_populates="assigned_zone")
    optimized_routes = relationship("OptimizedRoute", back_populates="zone")

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_zones_tenant_name"),
        Index("idx_zones_tenant_active", "tenant_id", "is_active"),
    )
