from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_VIEWER = "viewer"
ADMIN_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_VIEWER)


class AdminPermission:
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_USERS = "manage_users"
    MANAGE_PARTNERS = "manage_partners"
    MANAGE_BOOKINGS = "manage_bookings"
    MANAGE_SERVICES = "manage_services"
    SEND_NOTIFICATIONS = "send_notifications"

    ALL = (
        VIEW_ANALYTICS,
        MANAGE_USERS,
        MANAGE_PARTNERS,
        MANAGE_BOOKINGS,
        MANAGE_SERVICES,
        SEND_NOTIFICATIONS,
    )


class ActivityType:
    LOGIN = "login"
    VIEW_ANALYTICS = "view_analytics"
    GENERATE_REPORT = "generate_report"
    UPDATE_BOOKING = "update_booking"
    REFUND_PAYMENT = "refund_payment"
    SEND_NOTIFICATION = "send_notification"
    SEED_SERVICES = "seed_services"
    VERIFY_PARTNER = "verify_partner"


@dataclass
class AdminUser:
    uid: str
    email: str
    display_name: str
    role: str = ROLE_ADMIN
    permissions: list[str] = field(default_factory=list)
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    def can_perform_action(self, permission: str) -> bool:
        if not self.is_active:
            return False
        return self.is_super_admin or permission in self.permissions


@dataclass
class AdminActivity:
    id: str
    admin_id: str
    activity_type: str
    description: str
    metadata: dict = field(default_factory=dict)
    created_at: Optional[datetime] = None


@dataclass
class BookingAnalytics:
    start: date
    end: date
    total_bookings: int = 0
    status_counts: dict[str, int] = field(default_factory=dict)
    completion_rate: float = 0.0
    cancellation_rate: float = 0.0
    average_booking_value: float = 0.0
    bookings_by_service: dict[str, int] = field(default_factory=dict)
    bookings_by_day: dict[str, int] = field(default_factory=dict)


@dataclass
class RevenueAnalytics:
    start: date
    end: date
    gross_revenue: float = 0.0
    platform_fees: float = 0.0
    partner_payouts: float = 0.0
    paid_bookings: int = 0
    average_order_value: float = 0.0
    refunded_amount: float = 0.0
    revenue_by_day: dict[str, float] = field(default_factory=dict)
    revenue_by_service: dict[str, float] = field(default_factory=dict)


@dataclass
class TopPartner:
    uid: str
    name: str
    completed_jobs: int
    rating: float


@dataclass
class PartnerAnalytics:
    start: date
    end: date
    total_partners: int = 0
    verified_partners: int = 0
    available_partners: int = 0
    online_partners: int = 0
    average_rating: float = 0.0
    top_partners: list[TopPartner] = field(default_factory=list)


@dataclass
class UserAnalytics:
    start: date
    end: date
    total_users: int = 0
    new_users: int = 0
    clients: int = 0
    partners: int = 0
    users_with_bookings: int = 0


@dataclass
class SystemMetrics:
    counts: dict[str, int]
    database_latency_ms: float
    cache_available: bool
    generated_at: datetime


@dataclass
class GeneratedReport:
    id: str
    report_type: str
    start: date
    end: date
    generated_at: datetime
    row_count: int
    content: str
