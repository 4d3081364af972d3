"""Booking schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from .entities import BookingStatus, PaymentStatus


class BookingCreate(BaseModel):
    service_id: str
    partner_id: Optional[str] = None
    scheduled_date: date
    time_slot: str
    hours: float
    client_address: str
    client_latitude: Optional[float] = None
    client_longitude: Optional[float] = None
    special_instructions: Optional[str] = None
    is_urgent: bool = False

    @field_validator("partner_id")
    @classmethod
    def empty_partner_is_none(cls, v):
        return v or None


class CancelRequest(BaseModel):
    reason: str


class StatusUpdateRequest(BaseModel):
    status: str


class BookingResponse(BaseModel):
    id: str
    user_id: str
    partner_id: str
    service_id: str
    service_name: str
    scheduled_date: date
    time_slot: str
    hours: float
    total_price: float
    is_urgent: bool
    status: BookingStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    payment_transaction_id: Optional[str] = None
    client_address: str
    client_latitude: Optional[float] = None
    client_longitude: Optional[float] = None
    special_instructions: Optional[str] = None
    cancellation_reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    formatted_date_time: str
    confirmed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
