from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class RouteStop(BaseModel):
    order_id: str
    sequence: int
    address: str


class OptimizedRouteRead(BaseModel):
    id: str
    batch_id: str
    zone_id: str
    driver_id: Optional[str] = None
    route_data: List[RouteStop] = []
    estimated_distance: Optional[float] = None  # miles
    estimated_time: Optional[int] = None  # minutes
    status: str
    created_at: Optional[datetime] = None
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RouteAssignment(BaseModel):
    driver_id: str
