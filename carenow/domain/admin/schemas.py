"""Admin schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class AdminLoginRequest(BaseModel):
    email: str
    password: str


class AdminResponse(BaseModel):
    uid: str
    email: str
    display_name: str
    role: str
    permissions: list[str]
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivityResponse(BaseModel):
    id: str
    admin_id: str
    activity_type: str
    description: str
    metadata: dict
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingAnalyticsResponse(BaseModel):
    start: date
    end: date
    total_bookings: int
    status_counts: dict[str, int]
    completion_rate: float
    cancellation_rate: float
    average_booking_value: float
    bookings_by_service: dict[str, int]
    bookings_by_day: dict[str, int]

    class Config:
        from_attributes = True


class RevenueAnalyticsResponse(BaseModel):
    start: date
    end: date
    gross_revenue: float
    platform_fees: float
    partner_payouts: float
    paid_bookings: int
    average_order_value: float
    refunded_amount: float
    revenue_by_day: dict[str, float]
    revenue_by_service: dict[str, float]

    class Config:
        from_attributes = True


class TopPartnerResponse(BaseModel):
    uid: str
    name: str
    completed_jobs: int
    rating: float

    class Config:
        from_attributes = True


class PartnerAnalyticsResponse(BaseModel):
    start: date
    end: date
    total_partners: int
    verified_partners: int
    available_partners: int
    online_partners: int
    average_rating: float
    top_partners: list[TopPartnerResponse]

    class Config:
        from_attributes = True


class UserAnalyticsResponse(BaseModel):
    start: date
    end: date
    total_users: int
    new_users: int
    clients: int
    partners: int
    users_with_bookings: int

    class Config:
        from_attributes = True


class SystemMetricsResponse(BaseModel):
    counts: dict[str, int]
    database_latency_ms: float
    cache_available: bool
    generated_at: datetime

    class Config:
        from_attributes = True


class ReportResponse(BaseModel):
    id: str
    report_type: str
    start: date
    end: date
    generated_at: datetime
    row_count: int
    content: str

    class Config:
        from_attributes = True


class PartnerVerificationRequest(BaseModel):
    is_verified: bool = True
