from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum, IntEnum
from typing import Optional

from ...config import PLATFORM_FEE_RATE
from ...shared.clock import local_now
from ...shared.geo import approximate_distance_km
from ...shared.validators import parse_window, time_to_minutes, weekday_name
from ..bookings.entities import Booking, BookingStatus


@dataclass
class Partner:
    uid: str
    name: str
    phone: str
    email: str
    gender: Optional[str] = None
    services: list[str] = field(default_factory=list)
    working_hours: dict[str, list[str]] = field(default_factory=dict)
    rating: float = 0.0
    total_reviews: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    certifications: list[str] = field(default_factory=list)
    experience_years: int = 0
    price_per_hour: float = 0.0
    is_available: bool = True
    is_verified: bool = False
    is_online: bool = False
    last_seen: Optional[datetime] = None
    unavailability_reason: Optional[str] = None
    unavailable_until: Optional[datetime] = None
    blocked_dates: list[str] = field(default_factory=list)
    fcm_token: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def provides_service(self, service_id: str) -> bool:
        return service_id in self.services

    def windows_for(self, day: str) -> list[str]:
        return self.working_hours.get(day.lower()) or []

    def works_on(self, day: date) -> bool:
        return bool(self.windows_for(weekday_name(day)))

    def is_date_blocked(self, day: date) -> bool:
        return day.isoformat() in self.blocked_dates

    def is_available_at(self, day: str, time_slot: str) -> bool:
        """Available and ``time_slot`` falls inside one of the day's windows"""
        if not self.is_available:
            return False
        minute = time_to_minutes(time_slot)
        for window in self.windows_for(day):
            start, end = parse_window(window)
            if start <= minute < end:
                return True
        return False

    def distance_from(self, latitude: float, longitude: float) -> Optional[float]:
        if not self.has_location:
            return None
        return approximate_distance_km(self.latitude, self.longitude, latitude, longitude)


@dataclass
class PartnerAvailability:
    partner_id: str
    is_available: bool
    is_online: bool
    last_seen: Optional[datetime]
    unavailability_reason: Optional[str]
    unavailable_until: Optional[datetime]
    working_hours: dict[str, list[str]]
    blocked_dates: list[str]

    @classmethod
    def from_partner(cls, partner: Partner) -> "PartnerAvailability":
        return cls(
            partner_id=partner.uid,
            is_available=partner.is_available,
            is_online=partner.is_online,
            last_seen=partner.last_seen,
            unavailability_reason=partner.unavailability_reason,
            unavailable_until=partner.unavailable_until,
            working_hours=dict(partner.working_hours),
            blocked_dates=list(partner.blocked_dates),
        )


# ---------------------------------------------------------------------------
# Onboarding
# ---------------------------------------------------------------------------


class OnboardingStep(IntEnum):
    PERSONAL_INFO = 1
    SERVICES = 2
    WORKING_HOURS = 3
    LOCATION = 4
    PRICING = 5
    VERIFICATION = 6
    COMPLETED = 7

    @property
    def title(self) -> str:
        return {
            1: "Thông tin cá nhân",
            2: "Dịch vụ",
            3: "Giờ làm việc",
            4: "Vị trí",
            5: "Bảng giá",
            6: "Xác minh",
            7: "Hoàn tất",
        }[self.value]


# Steps that count towards completion (everything before COMPLETED)
COUNTED_STEPS = [s for s in OnboardingStep if s != OnboardingStep.COMPLETED]


@dataclass
class PartnerOnboarding:
    uid: str
    current_step: OnboardingStep = OnboardingStep.PERSONAL_INFO
    completed_steps: dict[int, bool] = field(default_factory=dict)
    partial_profile: dict = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_step_completed(self, step: OnboardingStep) -> bool:
        return bool(self.completed_steps.get(int(step)))

    @property
    def completion_percentage(self) -> float:
        done = sum(1 for s in COUNTED_STEPS if self.is_step_completed(s))
        return done / len(COUNTED_STEPS) * 100

    @property
    def is_complete(self) -> bool:
        return self.current_step == OnboardingStep.COMPLETED

    @property
    def next_step(self) -> Optional[OnboardingStep]:
        if self.current_step == OnboardingStep.COMPLETED:
            return None
        return OnboardingStep(self.current_step + 1)

    @property
    def previous_step(self) -> Optional[OnboardingStep]:
        if self.current_step == OnboardingStep.PERSONAL_INFO:
            return None
        return OnboardingStep(self.current_step - 1)

    @property
    def remaining_steps(self) -> list[OnboardingStep]:
        return [s for s in COUNTED_STEPS if not self.is_step_completed(s)]

    def complete_step(self, step: OnboardingStep) -> "PartnerOnboarding":
        completed = dict(self.completed_steps)
        completed[int(step)] = True
        self.completed_steps = completed
        if step == self.current_step:
            self.current_step = self.next_step or OnboardingStep.COMPLETED
        return self

    def can_move_to_next_step(self) -> bool:
        p = self.partial_profile
        step = self.current_step
        if step == OnboardingStep.PERSONAL_INFO:
            return bool(p.get("name") and p.get("email") and p.get("phone"))
        if step == OnboardingStep.SERVICES:
            return bool(p.get("services"))
        if step == OnboardingStep.WORKING_HOURS:
            return bool(p.get("working_hours"))
        if step == OnboardingStep.LOCATION:
            return p.get("latitude") is not None and p.get("longitude") is not None
        if step == OnboardingStep.PRICING:
            return (p.get("price_per_hour") or 0) > 0
        if step == OnboardingStep.VERIFICATION:
            return True
        return False

    def validation_message(self) -> Optional[str]:
        if self.can_move_to_next_step():
            return None
        return {
            OnboardingStep.PERSONAL_INFO: "Please fill in your name, email and phone number",
            OnboardingStep.SERVICES: "Please select at least one service",
            OnboardingStep.WORKING_HOURS: "Please set your working hours",
            OnboardingStep.LOCATION: "Please set your working location",
            OnboardingStep.PRICING: "Please set your hourly price",
            OnboardingStep.COMPLETED: "Onboarding is already completed",
        }.get(self.current_step)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class JobStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def from_booking_status(cls, status: BookingStatus) -> "JobStatus":
        if status == BookingStatus.CONFIRMED:
            return cls.ACCEPTED
        return cls(status.value)

    def to_booking_status(self) -> BookingStatus:
        if self == JobStatus.ACCEPTED:
            return BookingStatus.CONFIRMED
        return BookingStatus(self.value)


class JobPriority(str, Enum):
    NORMAL = "normal"
    URGENT = "urgent"


STARTING_SOON = timedelta(hours=1)


@dataclass
class Job:
    booking_id: str
    partner_id: str
    user_id: str
    service_id: str
    service_name: str
    scheduled_date: date
    time_slot: str
    hours: float
    total_price: float
    status: JobStatus
    client_address: str
    start_at: datetime
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_latitude: Optional[float] = None
    client_longitude: Optional[float] = None
    special_instructions: Optional[str] = None
    priority: JobPriority = JobPriority.NORMAL
    distance_from_partner: Optional[float] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_booking(
        cls,
        booking: Booking,
        partner: Optional[Partner] = None,
        client_name: Optional[str] = None,
        client_phone: Optional[str] = None,
    ) -> "Job":
        distance = None
        if (
            partner is not None
            and booking.client_latitude is not None
            and booking.client_longitude is not None
        ):
            distance = partner.distance_from(booking.client_latitude, booking.client_longitude)
        return cls(
            booking_id=booking.id,
            partner_id=booking.partner_id or (partner.uid if partner else ""),
            user_id=booking.user_id,
            service_id=booking.service_id,
            service_name=booking.service_name,
            scheduled_date=booking.scheduled_date,
            time_slot=booking.time_slot,
            hours=booking.hours,
            total_price=booking.total_price,
            status=JobStatus.from_booking_status(booking.status),
            client_address=booking.client_address,
            start_at=booking.start_datetime,
            client_name=client_name,
            client_phone=client_phone,
            client_latitude=booking.client_latitude,
            client_longitude=booking.client_longitude,
            special_instructions=booking.special_instructions,
            priority=JobPriority.URGENT if booking.is_urgent else JobPriority.NORMAL,
            distance_from_partner=distance,
            created_at=booking.created_at,
        )

    @property
    def partner_earnings(self) -> float:
        return self.total_price * (1 - PLATFORM_FEE_RATE)

    @property
    def can_be_accepted(self) -> bool:
        return self.status == JobStatus.PENDING

    @property
    def can_be_rejected(self) -> bool:
        return self.status == JobStatus.PENDING

    @property
    def can_be_started(self) -> bool:
        return self.status == JobStatus.ACCEPTED

    @property
    def can_be_completed(self) -> bool:
        return self.status == JobStatus.IN_PROGRESS

    def time_until_start(self, now: Optional[datetime] = None) -> timedelta:
        return self.start_at - (now or local_now())

    def is_starting_soon(self, now: Optional[datetime] = None) -> bool:
        remaining = self.time_until_start(now)
        return timedelta(0) < remaining <= STARTING_SOON

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        return self.status == JobStatus.ACCEPTED and self.time_until_start(now) < timedelta(0)


# ---------------------------------------------------------------------------
# Earnings
# ---------------------------------------------------------------------------


@dataclass
class DailyEarning:
    date: date
    earnings: float
    jobs: int


@dataclass
class PartnerEarnings:
    partner_id: str
    total_earnings: float = 0.0
    today_earnings: float = 0.0
    week_earnings: float = 0.0
    month_earnings: float = 0.0
    total_jobs: int = 0
    today_jobs: int = 0
    week_jobs: int = 0
    month_jobs: int = 0
    average_rating: float = 0.0
    total_reviews: int = 0
    platform_fee_rate: float = PLATFORM_FEE_RATE
    daily_breakdown: list[DailyEarning] = field(default_factory=list)

    @property
    def average_earnings_per_job(self) -> float:
        if not self.total_jobs:
            return 0.0
        return self.total_earnings / self.total_jobs

    @property
    def weekly_growth(self) -> float:
        """Percent change of the latest 7 days over the 7 days before"""
        if len(self.daily_breakdown) < 14:
            return 0.0
        this_week = sum(d.earnings for d in self.daily_breakdown[:7])
        last_week = sum(d.earnings for d in self.daily_breakdown[7:14])
        if last_week == 0:
            return 0.0
        return (this_week - last_week) / last_week * 100
