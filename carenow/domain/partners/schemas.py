"""Partner, onboarding, job and earnings schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import normalize_phone
from .entities import JobPriority, JobStatus


class PartnerCreate(BaseModel):
    name: str
    phone: str
    email: str
    gender: Optional[str] = None
    services: list[str]
    working_hours: dict[str, list[str]]
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    certifications: list[str] = []
    experience_years: int = 0
    price_per_hour: float = 0.0

    @field_validator("phone")
    @classmethod
    def strip_phone(cls, v):
        return normalize_phone(v) if v else v


class PartnerResponse(BaseModel):
    uid: str
    name: str
    phone: str
    email: str
    gender: Optional[str] = None
    services: list[str]
    working_hours: dict[str, list[str]]
    rating: float
    total_reviews: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    certifications: list[str]
    experience_years: int
    price_per_hour: float
    is_available: bool
    is_verified: bool
    is_online: bool
    last_seen: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PartnerMatchResponse(BaseModel):
    partner: PartnerResponse
    distance_km: Optional[float] = None

    class Config:
        from_attributes = True


class ServicesUpdateRequest(BaseModel):
    services: list[str]


class WorkingHoursRequest(BaseModel):
    working_hours: dict[str, list[str]]


class AvailabilityStatusRequest(BaseModel):
    is_available: bool
    reason: Optional[str] = None
    unavailable_until: Optional[datetime] = None


class OnlineStatusRequest(BaseModel):
    is_online: bool


class BlockedDatesRequest(BaseModel):
    dates: list[str]


class AvailabilityResponse(BaseModel):
    partner_id: str
    is_available: bool
    is_online: bool
    last_seen: Optional[datetime] = None
    unavailability_reason: Optional[str] = None
    unavailable_until: Optional[datetime] = None
    working_hours: dict[str, list[str]]
    blocked_dates: list[str]

    class Config:
        from_attributes = True


class OnboardingProfileRequest(BaseModel):
    profile: dict


class OnboardingResponse(BaseModel):
    uid: str
    current_step: int
    completed_steps: dict[int, bool]
    partial_profile: dict
    completion_percentage: float
    is_complete: bool
    next_step: Optional[int] = None
    previous_step: Optional[int] = None
    remaining_steps: list[int]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RejectJobRequest(BaseModel):
    reason: str


class JobResponse(BaseModel):
    booking_id: str
    partner_id: str
    user_id: str
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    service_id: str
    service_name: str
    scheduled_date: date
    time_slot: str
    hours: float
    total_price: float
    partner_earnings: float
    status: JobStatus
    priority: JobPriority
    client_address: str
    client_latitude: Optional[float] = None
    client_longitude: Optional[float] = None
    special_instructions: Optional[str] = None
    distance_from_partner: Optional[float] = None
    can_be_accepted: bool
    can_be_rejected: bool
    can_be_started: bool
    can_be_completed: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DailyEarningResponse(BaseModel):
    date: date
    earnings: float
    jobs: int

    class Config:
        from_attributes = True


class EarningsResponse(BaseModel):
    partner_id: str
    total_earnings: float
    today_earnings: float
    week_earnings: float
    month_earnings: float
    total_jobs: int
    today_jobs: int
    week_jobs: int
    month_jobs: int
    average_rating: float
    total_reviews: int
    platform_fee_rate: float
    average_earnings_per_job: float
    weekly_growth: float
    daily_breakdown: list[DailyEarningResponse]

    class Config:
        from_attributes = True
