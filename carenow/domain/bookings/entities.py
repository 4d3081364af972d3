from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from ...shared.clock import local_now
from ...shared.failures import ValidationFailure
from ...shared.validators import time_to_minutes

# Bookings can be cancelled up to this long before they start
CANCELLATION_WINDOW = timedelta(hours=2)


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"

    @staticmethod
    def _normalize(value: Optional[str]) -> str:
        normalized = (value or "").strip().lower().replace("-", "_")
        return "in_progress" if normalized == "inprogress" else normalized

    @classmethod
    def from_string(cls, value: Optional[str]) -> "BookingStatus":
        """Lenient parse for stored values; unknown strings read as pending"""
        try:
            return cls(cls._normalize(value))
        except ValueError:
            return cls.PENDING

    @classmethod
    def parse(cls, value: Optional[str]) -> "BookingStatus":
        """Strict parse for caller input"""
        try:
            return cls(cls._normalize(value))
        except ValueError:
            raise ValidationFailure(f"Invalid booking status: {value}") from None

    @property
    def display_name(self) -> str:
        return {
            "pending": "Chờ xác nhận",
            "confirmed": "Đã xác nhận",
            "in_progress": "Đang thực hiện",
            "completed": "Hoàn thành",
            "cancelled": "Đã hủy",
            "rejected": "Bị từ chối",
        }[self.value]


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "PaymentStatus":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNPAID


@dataclass
class Booking:
    id: str
    user_id: str
    service_id: str
    service_name: str
    scheduled_date: date
    time_slot: str
    hours: float
    total_price: float
    client_address: str
    partner_id: str = ""
    is_urgent: bool = False
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    payment_method: Optional[str] = None
    payment_transaction_id: Optional[str] = None
    client_latitude: Optional[float] = None
    client_longitude: Optional[float] = None
    special_instructions: Optional[str] = None
    cancellation_reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    reminder_sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def start_datetime(self) -> datetime:
        minutes = time_to_minutes(self.time_slot)
        return datetime.combine(self.scheduled_date, datetime.min.time()) + timedelta(minutes=minutes)

    @property
    def end_datetime(self) -> datetime:
        return self.start_datetime + timedelta(hours=self.hours)

    @property
    def has_partner(self) -> bool:
        return bool(self.partner_id)

    @property
    def is_pending(self) -> bool:
        return self.status == BookingStatus.PENDING

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    @property
    def is_in_progress(self) -> bool:
        return self.status == BookingStatus.IN_PROGRESS

    @property
    def is_completed(self) -> bool:
        return self.status == BookingStatus.COMPLETED

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED

    @property
    def is_rejected(self) -> bool:
        return self.status == BookingStatus.REJECTED

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def can_be_cancelled(self, now: Optional[datetime] = None) -> bool:
        if self.is_cancelled or self.is_completed:
            return False
        now = now or local_now()
        return self.start_datetime - now > CANCELLATION_WINDOW

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start_datetime < end and start < self.end_datetime

    @property
    def formatted_date_time(self) -> str:
        return f"{self.scheduled_date.strftime('%d/%m/%Y')} {self.time_slot}"

    def involves(self, uid: str) -> bool:
        return uid in (self.user_id, self.partner_id)


@dataclass
class BookingRequest:
    user_id: str
    service_id: str
    scheduled_date: date
    time_slot: str
    hours: float
    client_address: str
    client_latitude: Optional[float] = None
    client_longitude: Optional[float] = None
    partner_id: Optional[str] = None
    special_instructions: Optional[str] = None
    is_urgent: bool = False


@dataclass
class NewBooking:
    """Fully priced booking ready to be stored"""

    user_id: str
    partner_id: str
    service_id: str
    service_name: str
    scheduled_date: date
    time_slot: str
    hours: float
    total_price: float
    client_address: str
    client_latitude: Optional[float]
    client_longitude: Optional[float]
    special_instructions: Optional[str]
    is_urgent: bool
