from pydantic import BaseModel
from typing import Literal, Optional
from datetime import datetime


class DriverBase(BaseModel):
    name: str
    phone: Optional[str] = None
    vehicle_type: Optional[str] = None  # van, truck, bike
    status: str = "offline"
    is_available: bool = True


class DriverCreate(DriverBase):
    user_id: Optional[str] = None


class DriverRead(DriverBase):
    id: str
    user_id: Optional[str] = None
    assigned_zone_id: Optional[str] = None
    tenant_id: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ZoneAssignment(BaseModel):
    zone_id: Optional[str] = None  # None clears the assignment


class DriverStatusUpdate(BaseModel):
    status: Literal["online", "offline", "on_delivery", "break"]
    is_available: Optional[bool] = None
