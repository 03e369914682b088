from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

Direction = Literal["north", "south", "east", "west"]


class ZoneBase(BaseModel):
    name: str  # e.g. "A", "B"
    direction: Direction
    max_distance: int = Field(default=300, ge=0)  # miles
    base_address: str
    is_active: bool = True


class ZoneCreate(ZoneBase):
    pass


class ZoneUpdate(BaseModel):
    name: Optional[str] = None
    direction: Optional[Direction] = None
    max_distance: Optional[int] = Field(default=None, ge=0)
    base_address: Optional[str] = None
    is_active: Optional[bool] = None


class ZoneRead(ZoneBase):
    id: str
    tenant_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
