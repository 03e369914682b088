from sqlalchemy import Column, String, Integer, ForeignKey, Text, DateTime, Date, Float, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from dispatch.models.base import Base
import uuid


class Order(Base):
    """Delivery order; only the fields the batching/zoning core reads or writes"""
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number = Column(String, unique=True, nullable=False)
    status = Column(String, default="pending", nullable=False)  # pending, assigned, ..., voided

    customer_name = Column(String, nullable=True)
    delivery_line1 = Column(String, nullable=False)
    delivery_city = Column(String, nullable=False)
    delivery_state = Column(String(2), nullable=False)
    delivery_zip = Column(String, nullable=False)
    delivery_lat = Column(Float, nullable=True)
    delivery_lng = Column(Float, nullable=True)

    pickup_date = Column(Date, nullable=False)

    # Route optimization
    batch_id = Column(String, ForeignKey("route_batches.id"), nullable=True)
    zone_id = Column(String, ForeignKey("zones.id"), nullable=True)
    route_sequence = Column(Integer, nullable=True)  # position within (batch, zone)

    created_by = Column(String, ForeignKey("users.id"), nullable=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Void functionality
    voided_at = Column(DateTime, nullable=True)
    void_reason = Column(Text, nullable=True)

    tenant = relationship("Tenant", back_populates="orders")
    batch = relationship("RouteBatch", back_populates="orders")
    zone = relationship("Zone")

    __table_args__ = (
        Index("idx_orders_tenant", "tenant_id"),
        Index("idx_orders_batch_zone", "batch_id", "zone_id"),
    )

    @property
    def coordinates(self):
        if self.delivery_lat is None or self.delivery_lng is None:
            return None
        return {"lat": self.delivery_lat, "lng": self.delivery_lng}

    @property
    def delivery_address(self) -> str:
        return f"{self.delivery_line1}, {self.delivery_city}, {self.delivery_state} {self.delivery_zip}"
