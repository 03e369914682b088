# dispatch/models/tenant.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from dispatch.models.base import Base


class Tenant(Base):
    __tablename__ = "tenants"
    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    slug = Column(String, unique=True, nullable=True)

    # Back-populated relationships
    users = relationship("User", back_populates="tenant")
    zones = relationship("Zone", back_populates="tenant")
    drivers = relationship("Driver", back_populates="tenant")
    orders = relationship("Order", back_populates="tenant")
    route_batches = relationship("RouteBatch", back_populates="tenant")
