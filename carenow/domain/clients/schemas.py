"""Client payment and review schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...config import DEFAULT_CURRENCY
from .entities import PaymentMethodType, PaymentResultStatus


class PaymentMethodResponse(BaseModel):
    type: PaymentMethodType
    name: str
    is_enabled: bool
    is_online: bool
    description: str

    class Config:
        from_attributes = True


class PaymentCreate(BaseModel):
    booking_id: str
    amount: float
    payment_method: PaymentMethodType
    currency: str = DEFAULT_CURRENCY
    description: Optional[str] = None
    metadata: dict = {}


class PaymentResultResponse(BaseModel):
    success: bool
    status: PaymentResultStatus
    amount: float
    currency: str
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentRecordResponse(BaseModel):
    id: str
    booking_id: str
    amount: float
    currency: str
    method: PaymentMethodType
    status: PaymentResultStatus
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReviewCreate(BaseModel):
    booking_id: str
    rating: int
    comment: Optional[str] = None
    tags: list[str] = []
    is_recommended: bool = True


class ReviewResponse(BaseModel):
    id: str
    booking_id: str
    user_id: str
    partner_id: str
    service_id: str
    rating: int
    comment: Optional[str] = None
    tags: list[str]
    is_recommended: bool
    stars_display: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CanReviewResponse(BaseModel):
    booking_id: str
    can_review: bool
