from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ...config import DEFAULT_CURRENCY


class PaymentMethodType(str, Enum):
    MOCK = "mock"
    STRIPE = "stripe"
    MOMO = "momo"
    VNPAY = "vnpay"
    CASH = "cash"

    @property
    def is_online(self) -> bool:
        return self != PaymentMethodType.CASH

    @property
    def display_name(self) -> str:
        return {
            "mock": "Thanh toán thử nghiệm",
            "stripe": "Thẻ quốc tế (Stripe)",
            "momo": "Ví MoMo",
            "vnpay": "VNPay",
            "cash": "Tiền mặt",
        }[self.value]


class PaymentResultStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


@dataclass
class PaymentMethod:
    type: PaymentMethodType
    name: str
    is_enabled: bool
    description: str = ""

    @property
    def is_online(self) -> bool:
        return self.type.is_online


@dataclass
class PaymentRequest:
    booking_id: str
    user_id: str
    amount: float
    payment_method: PaymentMethodType
    currency: str = DEFAULT_CURRENCY
    description: Optional[str] = None
    metadata: dict = field(default_factory=dict)


@dataclass
class PaymentResult:
    success: bool
    status: PaymentResultStatus
    amount: float
    currency: str
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass
class PaymentRecord:
    id: str
    booking_id: str
    user_id: str
    amount: float
    currency: str
    method: PaymentMethodType
    status: PaymentResultStatus
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Review:
    id: str
    booking_id: str
    user_id: str
    partner_id: str
    service_id: str
    rating: int
    comment: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    is_recommended: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_positive(self) -> bool:
        return self.rating >= 4

    @property
    def is_negative(self) -> bool:
        return self.rating <= 2

    @property
    def is_neutral(self) -> bool:
        return self.rating == 3

    @property
    def stars_display(self) -> str:
        return "★" * self.rating + "☆" * (5 - self.rating)


@dataclass
class ReviewRequest:
    booking_id: str
    user_id: str
    rating: int
    comment: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    is_recommended: bool = True
