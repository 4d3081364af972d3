import csv
from datetime import datetime, timedelta
from io import StringIO

import httpx
import pytest

from carenow.domain.admin.entities import ROLE_SUPER_ADMIN, ROLE_VIEWER, ActivityType, AdminPermission, AdminUser
from carenow.domain.admin.usecases import (
    ActivityQuery,
    AdminCredentials,
    AnalyticsQuery,
    AuthenticateAdmin,
    GenerateReport,
    GetAdminActivity,
    GetBookingAnalytics,
    GetPartnerAnalytics,
    GetRevenueAnalytics,
    GetSystemMetrics,
    GetUserAnalytics,
    PartnerVerification,
    ReportRequest,
    VerifyPartner,
    _AnalyticsUseCase,
)
from carenow.domain.auth.repository import FirebaseAuthRepository
from carenow.domain.auth.usecases import SignInWithEmail
from carenow.domain.bookings.entities import BookingStatus, PaymentStatus
from carenow.domain.partners.entities import Partner
from carenow.domain.partners.usecases import AvailablePartnersQuery, CreatePartnerProfile, GetAvailablePartners
from carenow.domain.profiles.entities import UserProfile
from carenow.shared.failures import AuthFailure

from .conftest import FULL_WEEK, MemoryCache


@pytest.fixture
def super_admin(admins):
    return admins.create_admin(AdminUser(uid="admin-1", email="Root@CareNow.vn", display_name="Root", role=ROLE_SUPER_ADMIN))


@pytest.fixture
def viewer(admins):
    return admins.create_admin(AdminUser(uid="viewer-1", email="viewer@carenow.vn", display_name="Viewer", role=ROLE_VIEWER))


@pytest.fixture
def today():
    return datetime.utcnow().date()


@pytest.fixture
def activity(make_partner, make_booking, bookings):
    """Three bookings: one completed and paid, one cancelled, one pending"""
    make_partner("p1")
    done = make_booking(partner_id="p1")
    bookings.update_booking(done.id, status=BookingStatus.COMPLETED, payment_status=PaymentStatus.PAID)
    cancelled = make_booking(partner_id="p1")
    bookings.update_booking(cancelled.id, status=BookingStatus.CANCELLED)
    make_booking(service_id="pet_care_basic")


def around(admin, today):
    return AnalyticsQuery(admin, today - timedelta(days=1), today + timedelta(days=1))


def test_permissions():
    assert AdminUser("a", "a@x.vn", "A", role=ROLE_SUPER_ADMIN).can_perform_action(AdminPermission.MANAGE_USERS)
    viewer = AdminUser("v", "v@x.vn", "V", role=ROLE_VIEWER, permissions=[AdminPermission.VIEW_ANALYTICS])
    assert viewer.can_perform_action(AdminPermission.VIEW_ANALYTICS)
    assert not viewer.can_perform_action(AdminPermission.MANAGE_BOOKINGS)
    viewer.is_active = False
    assert not viewer.can_perform_action(AdminPermission.VIEW_ANALYTICS)


def test_booking_analytics(activity, admins, bookings, super_admin, today):
    result = GetBookingAnalytics(admins, bookings)(around(super_admin, today)).unwrap()

    assert result.total_bookings == 3
    assert result.status_counts["completed"] == 1
    assert result.status_counts["cancelled"] == 1
    assert result.status_counts["in_progress"] == 0
    assert result.completion_rate == pytest.approx(0.3333)
    assert result.bookings_by_service == {"elder_care_basic": 2, "pet_care_basic": 1}
    assert result.bookings_by_day[today.isoformat()] == 3
    assert len(result.bookings_by_day) == 3


def test_booking_analytics_filters(activity, admins, bookings, super_admin, today):
    query = around(super_admin, today)
    query.partner_id = "p1"
    assert GetBookingAnalytics(admins, bookings)(query).unwrap().total_bookings == 2


def test_revenue_analytics(activity, admins, bookings, super_admin, today):
    result = GetRevenueAnalytics(admins, bookings)(around(super_admin, today)).unwrap()

    assert result.gross_revenue == 240000
    assert result.platform_fees == 36000
    assert result.partner_payouts == 204000
    assert result.paid_bookings == 1
    assert result.revenue_by_service == {"elder_care_basic": 240000}


def test_partner_and_user_analytics(activity, admins, bookings, partners, super_admin, today):
    partner_stats = GetPartnerAnalytics(admins, partners, bookings)(around(super_admin, today)).unwrap()
    assert partner_stats.total_partners == 1
    assert partner_stats.verified_partners == 1
    assert [t.uid for t in partner_stats.top_partners] == ["p1"]
    assert partner_stats.top_partners[0].completed_jobs == 1

    users = GetUserAnalytics(admins, bookings)(around(super_admin, today)).unwrap()
    assert users.total_users == 2
    assert users.clients == 2
    assert users.users_with_bookings == 1


def test_analytics_access_and_range(admins, bookings, viewer, super_admin, today):
    denied = GetBookingAnalytics(admins, bookings)(around(viewer, today))
    assert denied.failure.status_code == 403

    too_long = AnalyticsQuery(super_admin, today - timedelta(days=400), today)
    assert GetBookingAnalytics(admins, bookings)(too_long).failure.message == "Date range cannot exceed 365 days"

    backwards = AnalyticsQuery(super_admin, today, today - timedelta(days=1))
    assert GetBookingAnalytics(admins, bookings)(backwards).is_failure


def test_booking_report_csv(activity, admins, bookings, partners, super_admin, today):
    report = GenerateReport(admins, bookings, partners)(
        ReportRequest(super_admin, "booking", today - timedelta(days=1), today)
    ).unwrap()

    rows = list(csv.reader(StringIO(report.content)))
    assert rows[0][:3] == ["ID", "Service", "Date"]
    assert len(rows) == 4
    assert report.row_count == 3
    assert {r[5] for r in rows[1:]} == {"completed", "cancelled", "pending"}


def test_other_reports(activity, admins, bookings, partners, super_admin, today):
    generate = GenerateReport(admins, bookings, partners)

    revenue = generate(ReportRequest(super_admin, "revenue", today, today)).unwrap()
    day, amount = revenue.content.splitlines()[1].split(",")
    assert day == today.isoformat()
    assert float(amount) == 240000

    partner_report = generate(ReportRequest(super_admin, "partner", today, today)).unwrap()
    assert "elder_care_basic" in partner_report.content

    users = generate(ReportRequest(super_admin, "user", today, today)).unwrap()
    assert users.row_count == 5

    assert generate(ReportRequest(super_admin, "weather", today, today)).failure.message == (
        "Invalid report type: weather"
    )


def test_system_metrics(catalog, admins, super_admin):
    metrics = GetSystemMetrics(admins, MemoryCache())(super_admin).unwrap()
    assert metrics.cache_available
    assert metrics.counts["services"] == 8
    assert metrics.database_latency_ms >= 0

    offline = GetSystemMetrics(admins, MemoryCache(available=False))(super_admin).unwrap()
    assert not offline.cache_available


def test_activity_log(activity, admins, bookings, partners, super_admin, today):
    GetBookingAnalytics(admins, bookings)(around(super_admin, today)).unwrap()
    GenerateReport(admins, bookings, partners)(ReportRequest(super_admin, "user", today, today)).unwrap()

    entries = GetAdminActivity(admins)(ActivityQuery("admin-1")).unwrap()
    assert {e.activity_type for e in entries} == {ActivityType.VIEW_ANALYTICS, ActivityType.GENERATE_REPORT}
    assert GetAdminActivity(admins)(ActivityQuery(limit=0)).is_failure



def test_abstract_analytics_needs_build(admins):
    with pytest.raises(TypeError):
        _AnalyticsUseCase(admins)

    class Unfinished(_AnalyticsUseCase):
        description = "nothing"

    with pytest.raises(TypeError):
        Unfinished(admins)


# ============================================================================
# PARTNER VERIFICATION
# ============================================================================


def register_partner(partners, profiles, uid="p-new"):
    profiles.create_profile(UserProfile(uid=uid, email=f"{uid}@example.com", display_name="Tran Thi B"))
    partner = Partner(
        uid=uid,
        name="Tran Thi B",
        phone="0987654321",
        email=f"{uid}@example.com",
        services=["elder_care_basic"],
        working_hours=FULL_WEEK,
        price_per_hour=120000,
    )
    return CreatePartnerProfile(partners, profiles)(partner).unwrap()


def test_verified_partner_becomes_discoverable(
    admins, partners, profiles, bookings, dispatcher, notifications, super_admin, viewer, upcoming_day
):
    assert not register_partner(partners, profiles).is_verified
    query = AvailablePartnersQuery("elder_care_basic", upcoming_day, "09:00")
    discover = GetAvailablePartners(partners, bookings)
    assert discover(query).unwrap() == []

    verify = VerifyPartner(admins, partners, dispatcher)
    assert verify(PartnerVerification(viewer, "p-new")).failure.status_code == 403
    assert verify(PartnerVerification(super_admin, "ghost")).failure.status_code == 404

    verified = verify(PartnerVerification(super_admin, "p-new")).unwrap()
    assert verified.is_verified
    assert [m.partner.uid for m in discover(query).unwrap()] == ["p-new"]

    [entry] = admins.get_activity("admin-1", 10)
    assert entry.activity_type == ActivityType.VERIFY_PARTNER
    assert entry.metadata["partner_id"] == "p-new"
    inbox = notifications.get_user_notifications("p-new", 50, True, None, datetime.utcnow())
    assert [n.type for n in inbox] == ["account_update"]

    # already verified: nothing new is logged
    verify(PartnerVerification(super_admin, "p-new")).unwrap()
    assert len(admins.get_activity("admin-1", 10)) == 1

    revoked = verify(PartnerVerification(super_admin, "p-new", is_verified=False)).unwrap()
    assert not revoked.is_verified
    assert discover(query).unwrap() == []

# ============================================================================
# LOGIN
# ============================================================================


def identity_toolkit(uid):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("accounts:signInWithPassword"):
            return httpx.Response(200, json={"localId": uid, "idToken": "t", "refreshToken": "r", "expiresIn": "3600"})
        return httpx.Response(200, json={"users": [{"localId": uid, "email": "root@carenow.vn"}]})

    return httpx.MockTransport(handler)


def admin_login(admins, uid):
    repository = FirebaseAuthRepository(api_key="test-key", transport=identity_toolkit(uid))
    return AuthenticateAdmin(SignInWithEmail(repository), admins)


@pytest.mark.asyncio
async def test_admin_login(admins, super_admin):
    admin = (await admin_login(admins, "admin-1")(AdminCredentials("root@carenow.vn", "password123"))).unwrap()

    assert admin.email == "root@carenow.vn"
    assert admin.last_login_at is not None
    [entry] = admins.get_activity("admin-1", 10)
    assert entry.activity_type == ActivityType.LOGIN


@pytest.mark.asyncio
async def test_admin_login_rejections(admins, super_admin):
    short = await admin_login(admins, "admin-1")(AdminCredentials("root@carenow.vn", "short"))
    assert short.failure.message == "Password must be at least 8 characters"

    outsider = await admin_login(admins, "client-9")(AdminCredentials("root@carenow.vn", "password123"))
    assert outsider.failure.status_code == 403

    admins.create_admin(AdminUser(uid="old-1", email="old@carenow.vn", display_name="Old", is_active=False))
    inactive = await admin_login(admins, "old-1")(AdminCredentials("old@carenow.vn", "password123"))
    assert isinstance(inactive.failure, AuthFailure)
