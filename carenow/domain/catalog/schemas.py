"""Service catalog schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ServiceResponse(BaseModel):
    id: str
    name: str
    description: str
    category: str
    icon_url: Optional[str] = None
    base_price: float
    duration_minutes: int
    requirements: list[str]
    benefits: list[str]
    is_active: bool
    sort_order: int
    booking_count: int
    formatted_price: str
    formatted_duration: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SeedResponse(BaseModel):
    inserted: int
