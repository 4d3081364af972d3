"""Admin login, analytics, system metrics and CSV reports"""

import csv
import logging
import uuid
from abc import abstractmethod
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from io import StringIO
from typing import Optional

from ...cache import Cache
from ...config import PLATFORM_FEE_RATE
from ...shared.failures import AuthFailure, CacheFailure, forbidden
from ...shared.usecase import AsyncUseCase, UseCase
from ...shared.validators import ensure, is_blank, is_valid_email
from ..auth.usecases import EmailSignIn, SignInWithEmail
from ..bookings.entities import Booking, BookingStatus, PaymentStatus
from ..bookings.repository import BookingRepository
from ..notifications.entities import NotificationCategory, NotificationPriority, NotificationTypes
from ..notifications.usecases import NotificationDispatcher
from ..partners.entities import Partner
from ..partners.repository import PartnerRepository
from ..profiles.entities import ROLE_CLIENT, ROLE_PARTNER
from .entities import (
    ActivityType,
    AdminActivity,
    AdminPermission,
    AdminUser,
    BookingAnalytics,
    GeneratedReport,
    PartnerAnalytics,
    RevenueAnalytics,
    SystemMetrics,
    TopPartner,
    UserAnalytics,
)
from .repository import AdminRepository

logger = logging.getLogger(__name__)

MIN_ADMIN_PASSWORD_LENGTH = 8
MAX_ANALYTICS_DAYS = 365
TOP_PARTNERS_LIMIT = 10
MAX_ACTIVITY_LIMIT = 200
REPORT_TYPES = ("booking", "revenue", "partner", "user")


def require_permission(admin: AdminUser, permission: str) -> None:
    if not admin.can_perform_action(permission):
        raise forbidden(f"Admin lacks permission: {permission}")


@dataclass
class AdminCredentials:
    email: str
    password: str


class AuthenticateAdmin(AsyncUseCase):
    def __init__(self, sign_in: SignInWithEmail, admins: AdminRepository):
        self.sign_in = sign_in
        self.admins = admins

    async def execute(self, params: AdminCredentials) -> AdminUser:
        ensure(not is_blank(params.email), "Email cannot be empty")
        ensure(is_valid_email(params.email), "Invalid email format")
        ensure(
            len(params.password or "") >= MIN_ADMIN_PASSWORD_LENGTH,
            f"Password must be at least {MIN_ADMIN_PASSWORD_LENGTH} characters",
        )

        session = (await self.sign_in(EmailSignIn(params.email, params.password))).unwrap()
        admin = self.admins.find_admin(session.user.uid)
        if admin is None:
            logger.warning(f"⚠️ Non-admin sign-in attempt: {params.email}")
            raise forbidden("Account is not an admin")
        if not admin.is_active:
            raise AuthFailure("Admin account is deactivated")

        admin = self.admins.record_login(admin.uid)
        self.admins.log_activity(admin.uid, ActivityType.LOGIN, "Admin signed in")
        logger.info(f"✅ Admin {admin.email} signed in")
        return admin


@dataclass
class AnalyticsQuery:
    admin: AdminUser
    start: date
    end: date
    service_id: Optional[str] = None
    partner_id: Optional[str] = None


def _range_bounds(params: AnalyticsQuery) -> tuple[datetime, datetime]:
    ensure(params.start <= params.end, "Start date must be before end date")
    ensure(
        (params.end - params.start).days <= MAX_ANALYTICS_DAYS,
        f"Date range cannot exceed {MAX_ANALYTICS_DAYS} days",
    )
    return datetime.combine(params.start, time.min), datetime.combine(params.end, time.max)


def _days(start: date, end: date) -> list[str]:
    return [(start + timedelta(days=i)).isoformat() for i in range((end - start).days + 1)]


def _rate(part: int, whole: int) -> float:
    return round(part / whole, 4) if whole else 0.0


class _AnalyticsUseCase(UseCase):
    """Permission check, range check and activity logging around ``build``"""

    description = "analytics"

    def __init__(self, admins: AdminRepository):
        self.admins = admins

    def execute(self, params: AnalyticsQuery):
        require_permission(params.admin, AdminPermission.VIEW_ANALYTICS)
        start, end = _range_bounds(params)
        result = self.build(params, start, end)
        self.admins.log_activity(
            params.admin.uid,
            ActivityType.VIEW_ANALYTICS,
            f"Viewed {self.description}",
            {"start": params.start.isoformat(), "end": params.end.isoformat()},
        )
        return result

    @abstractmethod
    def build(self, params: AnalyticsQuery, start: datetime, end: datetime): ...


class GetBookingAnalytics(_AnalyticsUseCase):
    description = "booking analytics"

    def __init__(self, admins: AdminRepository, bookings: BookingRepository):
        super().__init__(admins)
        self.bookings = bookings

    def build(self, params: AnalyticsQuery, start: datetime, end: datetime) -> BookingAnalytics:
        bookings = [
            b
            for b in self.bookings.get_bookings_created_between(start, end)
            if (not params.service_id or b.service_id == params.service_id)
            and (not params.partner_id or b.partner_id == params.partner_id)
        ]
        statuses = Counter(b.status.value for b in bookings)
        per_day = dict.fromkeys(_days(params.start, params.end), 0)
        for booking in bookings:
            day = booking.created_at.date().isoformat()
            per_day[day] = per_day.get(day, 0) + 1

        total = len(bookings)
        return BookingAnalytics(
            start=params.start,
            end=params.end,
            total_bookings=total,
            status_counts={s.value: statuses.get(s.value, 0) for s in BookingStatus},
            completion_rate=_rate(statuses.get(BookingStatus.COMPLETED.value, 0), total),
            cancellation_rate=_rate(statuses.get(BookingStatus.CANCELLED.value, 0), total),
            average_booking_value=round(sum(b.total_price for b in bookings) / total, 2) if total else 0.0,
            bookings_by_service=dict(Counter(b.service_id for b in bookings)),
            bookings_by_day=per_day,
        )


class GetRevenueAnalytics(_AnalyticsUseCase):
    description = "revenue analytics"

    def __init__(self, admins: AdminRepository, bookings: BookingRepository):
        super().__init__(admins)
        self.bookings = bookings

    def build(self, params: AnalyticsQuery, start: datetime, end: datetime) -> RevenueAnalytics:
        bookings = self.bookings.get_bookings_created_between(start, end)
        paid = [b for b in bookings if b.payment_status == PaymentStatus.PAID]
        refunded = [b for b in bookings if b.payment_status == PaymentStatus.REFUNDED]

        by_day: dict[str, float] = dict.fromkeys(_days(params.start, params.end), 0.0)
        by_service: dict[str, float] = defaultdict(float)
        for booking in paid:
            day = booking.created_at.date().isoformat()
            by_day[day] = by_day.get(day, 0.0) + booking.total_price
            by_service[booking.service_id] += booking.total_price

        gross = sum(b.total_price for b in paid)
        fees = round(gross * PLATFORM_FEE_RATE, 2)
        return RevenueAnalytics(
            start=params.start,
            end=params.end,
            gross_revenue=gross,
            platform_fees=fees,
            partner_payouts=round(gross - fees, 2),
            paid_bookings=len(paid),
            average_order_value=round(gross / len(paid), 2) if paid else 0.0,
            refunded_amount=sum(b.total_price for b in refunded),
            revenue_by_day=by_day,
            revenue_by_service=dict(by_service),
        )


class GetPartnerAnalytics(_AnalyticsUseCase):
    description = "partner analytics"

    def __init__(
        self,
        admins: AdminRepository,
        partners: PartnerRepository,
        bookings: BookingRepository,
    ):
        super().__init__(admins)
        self.partners = partners
        self.bookings = bookings

    def build(self, params: AnalyticsQuery, start: datetime, end: datetime) -> PartnerAnalytics:
        partners = self.partners.list_partners()
        completed = Counter(
            b.partner_id
            for b in self.bookings.get_bookings_created_between(start, end)
            if b.is_completed and b.partner_id
        )
        rated = [p.rating for p in partners if p.total_reviews > 0]
        by_uid = {p.uid: p for p in partners}
        top = [
            TopPartner(uid=uid, name=by_uid[uid].name, completed_jobs=count, rating=by_uid[uid].rating)
            for uid, count in completed.most_common()
            if uid in by_uid
        ][:TOP_PARTNERS_LIMIT]

        return PartnerAnalytics(
            start=params.start,
            end=params.end,
            total_partners=len(partners),
            verified_partners=sum(1 for p in partners if p.is_verified),
            available_partners=sum(1 for p in partners if p.is_available),
            online_partners=sum(1 for p in partners if p.is_online),
            average_rating=round(sum(rated) / len(rated), 2) if rated else 0.0,
            top_partners=top,
        )


class GetUserAnalytics(_AnalyticsUseCase):
    description = "user analytics"

    def __init__(self, admins: AdminRepository, bookings: BookingRepository):
        super().__init__(admins)
        self.bookings = bookings

    def build(self, params: AnalyticsQuery, start: datetime, end: datetime) -> UserAnalytics:
        bookings = self.bookings.get_bookings_created_between(start, end)
        return UserAnalytics(
            start=params.start,
            end=params.end,
            total_users=self.admins.count_users(),
            new_users=self.admins.count_users(created_from=start, created_to=end),
            clients=self.admins.count_users(role=ROLE_CLIENT),
            partners=self.admins.count_users(role=ROLE_PARTNER),
            users_with_bookings=len({b.user_id for b in bookings}),
        )


class GetSystemMetrics(UseCase):
    def __init__(self, admins: AdminRepository, cache: Cache):
        self.admins = admins
        self.cache = cache

    def execute(self, admin: AdminUser) -> SystemMetrics:
        require_permission(admin, AdminPermission.VIEW_ANALYTICS)
        latency = self.admins.ping_database()
        try:
            cache_available = self.cache.ping()
        except CacheFailure as e:
            logger.warning(f"⚠️ Cache unavailable for metrics: {e.message}")
            cache_available = False
        return SystemMetrics(
            counts=self.admins.collection_counts(),
            database_latency_ms=latency,
            cache_available=cache_available,
            generated_at=datetime.utcnow(),
        )


@dataclass
class ReportRequest:
    admin: AdminUser
    report_type: str
    start: date
    end: date


def _booking_rows(bookings: list[Booking]) -> list[list]:
    return [
        [
            b.id,
            b.service_name,
            b.scheduled_date.isoformat(),
            b.time_slot,
            b.hours,
            b.status.value,
            b.payment_status.value,
            b.total_price,
            b.partner_id,
            b.created_at.isoformat() if b.created_at else "",
        ]
        for b in bookings
    ]


class GenerateReport(UseCase):
    """CSV export of one analytics area for a date range"""

    def __init__(
        self,
        admins: AdminRepository,
        bookings: BookingRepository,
        partners: PartnerRepository,
    ):
        self.admins = admins
        self.bookings = bookings
        self.partners = partners
        self.revenue = GetRevenueAnalytics(admins, bookings)
        self.users = GetUserAnalytics(admins, bookings)

    def execute(self, params: ReportRequest) -> GeneratedReport:
        ensure(params.report_type in REPORT_TYPES, f"Invalid report type: {params.report_type}")
        require_permission(params.admin, AdminPermission.VIEW_ANALYTICS)
        query = AnalyticsQuery(params.admin, params.start, params.end)
        start, end = _range_bounds(query)

        output = StringIO()
        writer = csv.writer(output)

        if params.report_type == "booking":
            writer.writerow(
                ["ID", "Service", "Date", "Time", "Hours", "Status", "Payment Status", "Total", "Partner", "Created At"]
            )
            rows = _booking_rows(self.bookings.get_bookings_created_between(start, end))
        elif params.report_type == "revenue":
            revenue = self.revenue.build(query, start, end)
            writer.writerow(["Date", "Revenue"])
            rows = [[day, amount] for day, amount in revenue.revenue_by_day.items()]
        elif params.report_type == "partner":
            writer.writerow(["UID", "Name", "Services", "Rating", "Reviews", "Verified", "Available", "Online"])
            rows = [
                [p.uid, p.name, ";".join(p.services), p.rating, p.total_reviews, p.is_verified, p.is_available, p.is_online]
                for p in self.partners.list_partners()
            ]
        else:
            users = self.users.build(query, start, end)
            writer.writerow(["Metric", "Value"])
            rows = [
                ["total_users", users.total_users],
                ["new_users", users.new_users],
                ["clients", users.clients],
                ["partners", users.partners],
                ["users_with_bookings", users.users_with_bookings],
            ]

        writer.writerows(rows)
        report = GeneratedReport(
            id=str(uuid.uuid4()),
            report_type=params.report_type,
            start=params.start,
            end=params.end,
            generated_at=datetime.utcnow(),
            row_count=len(rows),
            content=output.getvalue(),
        )
        self.admins.log_activity(
            params.admin.uid,
            ActivityType.GENERATE_REPORT,
            f"Generated {params.report_type} report",
            {"report_id": report.id, "rows": report.row_count},
        )
        logger.info(f"📊 {params.report_type} report generated by {params.admin.email} ({report.row_count} rows)")
        return report


@dataclass
class ActivityQuery:
    admin_id: Optional[str] = None
    limit: int = 50


class GetAdminActivity(UseCase):
    def __init__(self, admins: AdminRepository):
        self.admins = admins

    def execute(self, params: ActivityQuery) -> list[AdminActivity]:
        ensure(
            0 < params.limit <= MAX_ACTIVITY_LIMIT,
            f"Limit must be between 1 and {MAX_ACTIVITY_LIMIT}",
        )
        return self.admins.get_activity(params.admin_id, params.limit)


@dataclass
class PartnerVerification:
    admin: AdminUser
    partner_id: str
    is_verified: bool = True


class VerifyPartner(UseCase):
    """Grants or revokes the verified badge; only verified partners are offered to clients"""

    def __init__(
        self,
        admins: AdminRepository,
        partners: PartnerRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.admins = admins
        self.partners = partners
        self.dispatcher = dispatcher

    def execute(self, params: PartnerVerification) -> Partner:
        require_permission(params.admin, AdminPermission.MANAGE_PARTNERS)
        ensure(not is_blank(params.partner_id), "Partner ID cannot be empty")
        partner = self.partners.get_partner(params.partner_id)
        if partner.is_verified == params.is_verified:
            return partner

        partner = self.partners.update_partner(partner.uid, is_verified=params.is_verified)
        action = "Verified" if params.is_verified else "Revoked verification of"
        self.admins.log_activity(
            params.admin.uid,
            ActivityType.VERIFY_PARTNER,
            f"{action} partner {partner.uid}",
            {"partner_id": partner.uid, "is_verified": params.is_verified},
        )
        logger.info(f"🛡️ {action} partner {partner.uid} by {params.admin.uid}")
        if params.is_verified:
            self.dispatcher.notify(
                partner.uid,
                NotificationTypes.ACCOUNT_UPDATE,
                "Hồ sơ đã được xác minh",
                "Bạn đã có thể nhận công việc từ khách hàng",
                category=NotificationCategory.SYSTEM,
                priority=NotificationPriority.HIGH,
            )
        return partner
