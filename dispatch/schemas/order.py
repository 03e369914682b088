from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime


class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class OrderCreate(BaseModel):
    customer_name: Optional[str] = None
    delivery_line1: str
    delivery_city: str
    delivery_state: str = Field(min_length=2, max_length=2)
    delivery_zip: str
    delivery_coordinates: Optional[Coordinates] = None
    pickup_date: date

    @field_validator("delivery_state")
    @classmethod
    def _upper_state(cls, value: str) -> str:
        return value.strip().upper()


class OrderVoid(BaseModel):
    void_reason: str


class OrderRead(BaseModel):
    id: str
    order_number: str
    status: str
    customer_name: Optional[str] = None
    delivery_line1: str
    delivery_city: str
    delivery_state: str
    delivery_zip: str
    pickup_date: date
    batch_id: Optional[str] = None
    zone_id: Optional[str] = None
    route_sequence: Optional[int] = None
    created_at: Optional[datetime] = None
    voided_at: Optional[datetime] = None
    void_reason: Optional[str] = None

    class Config:
        from_attributes = True
