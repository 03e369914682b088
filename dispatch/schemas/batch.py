from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime, time


class RouteBatchCreate(BaseModel):
    batch_date: date
    cutoff_time: Optional[time] = None  # defaults to the global cutoff (14:30)


class RouteBatchRead(BaseModel):
    id: str
    batch_date: date
    cutoff_time: time
    status: str
    order_count: int
    tenant_id: int
    created_at: Optional[datetime] = None
    optimized_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OptimizationJobRead(BaseModel):
    id: str
    batch_id: str
    status: str  # queued, running, succeeded, failed
    route_ids: List[str] = []
    error: Optional[str] = None
    created_at: datetime
    finished_at: Optional[datetime] = None

    class Config:
        from_attributes = True
