"""Admin endpoints: login, analytics, metrics, reports and activity log"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import StreamingResponse

from ...auth import get_current_admin
from ...cache import Cache
from ...dependencies import (
    get_admin_repository,
    get_auth_repository,
    get_booking_repository,
    get_cache,
    get_dispatcher,
    get_partner_repository,
)
from ..auth.repository import AuthRepository
from ..auth.usecases import SignInWithEmail
from ..bookings.repository import BookingRepository
from ..notifications.usecases import NotificationDispatcher
from ..partners.repository import PartnerRepository
from ..partners.schemas import PartnerResponse
from .entities import AdminUser
from .repository import AdminRepository
from .schemas import (
    ActivityResponse,
    AdminLoginRequest,
    AdminResponse,
    BookingAnalyticsResponse,
    PartnerAnalyticsResponse,
    PartnerVerificationRequest,
    ReportResponse,
    RevenueAnalyticsResponse,
    SystemMetricsResponse,
    UserAnalyticsResponse,
)
from .usecases import (
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
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

REPORT_TYPE_PATTERN = "^(booking|revenue|partner|user)$"


def get_report_generator(
    admins: AdminRepository = Depends(get_admin_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
) -> GenerateReport:
    return GenerateReport(admins, bookings, partners)


@router.post("/login", response_model=AdminResponse)
async def admin_login(
    body: AdminLoginRequest,
    auth: AuthRepository = Depends(get_auth_repository),
    admins: AdminRepository = Depends(get_admin_repository),
):
    use_case = AuthenticateAdmin(SignInWithEmail(auth), admins)
    admin = (await use_case(AdminCredentials(body.email, body.password))).unwrap()
    return AdminResponse.model_validate(admin)


@router.get("/me", response_model=AdminResponse)
async def admin_me(admin: AdminUser = Depends(get_current_admin)):
    return AdminResponse.model_validate(admin)


# ============================================================================
# ANALYTICS
# ============================================================================


@router.get("/analytics/bookings", response_model=BookingAnalyticsResponse)
async def booking_analytics(
    start: date = Query(...),
    end: date = Query(...),
    service_id: Optional[str] = Query(None),
    partner_id: Optional[str] = Query(None),
    admin: AdminUser = Depends(get_current_admin),
    admins: AdminRepository = Depends(get_admin_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    query = AnalyticsQuery(admin, start, end, service_id, partner_id)
    return BookingAnalyticsResponse.model_validate(GetBookingAnalytics(admins, bookings)(query).unwrap())


@router.get("/analytics/revenue", response_model=RevenueAnalyticsResponse)
async def revenue_analytics(
    start: date = Query(...),
    end: date = Query(...),
    admin: AdminUser = Depends(get_current_admin),
    admins: AdminRepository = Depends(get_admin_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    query = AnalyticsQuery(admin, start, end)
    return RevenueAnalyticsResponse.model_validate(GetRevenueAnalytics(admins, bookings)(query).unwrap())


@router.get("/analytics/partners", response_model=PartnerAnalyticsResponse)
async def partner_analytics(
    start: date = Query(...),
    end: date = Query(...),
    admin: AdminUser = Depends(get_current_admin),
    admins: AdminRepository = Depends(get_admin_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    query = AnalyticsQuery(admin, start, end)
    result = GetPartnerAnalytics(admins, partners, bookings)(query).unwrap()
    return PartnerAnalyticsResponse.model_validate(result)


@router.get("/analytics/users", response_model=UserAnalyticsResponse)
async def user_analytics(
    start: date = Query(...),
    end: date = Query(...),
    admin: AdminUser = Depends(get_current_admin),
    admins: AdminRepository = Depends(get_admin_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    query = AnalyticsQuery(admin, start, end)
    return UserAnalyticsResponse.model_validate(GetUserAnalytics(admins, bookings)(query).unwrap())


@router.get("/metrics", response_model=SystemMetricsResponse)
async def system_metrics(
    admin: AdminUser = Depends(get_current_admin),
    admins: AdminRepository = Depends(get_admin_repository),
    store: Cache = Depends(get_cache),
):
    return SystemMetricsResponse.model_validate(GetSystemMetrics(admins, store)(admin).unwrap())


# ============================================================================
# REPORTS AND ACTIVITY
# ============================================================================


@router.get("/reports/{report_type}", response_model=ReportResponse)
async def generate_report(
    report_type: str = Path(..., pattern=REPORT_TYPE_PATTERN),
    start: date = Query(...),
    end: date = Query(...),
    admin: AdminUser = Depends(get_current_admin),
    generator: GenerateReport = Depends(get_report_generator),
):
    report = generator(ReportRequest(admin, report_type, start, end)).unwrap()
    return ReportResponse.model_validate(report)


@router.get("/reports/{report_type}/download")
async def download_report(
    report_type: str = Path(..., pattern=REPORT_TYPE_PATTERN),
    start: date = Query(...),
    end: date = Query(...),
    admin: AdminUser = Depends(get_current_admin),
    generator: GenerateReport = Depends(get_report_generator),
):
    """Same report as a CSV attachment"""
    report = generator(ReportRequest(admin, report_type, start, end)).unwrap()
    filename = f"{report_type}_report_{start.isoformat()}_{end.isoformat()}.csv"
    return StreamingResponse(
        iter([report.content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/activity", response_model=list[ActivityResponse])
async def admin_activity(
    admin_id: Optional[str] = Query(None),
    limit: int = Query(50),
    admin: AdminUser = Depends(get_current_admin),
    admins: AdminRepository = Depends(get_admin_repository),
):
    activity = GetAdminActivity(admins)(ActivityQuery(admin_id, limit)).unwrap()
    return [ActivityResponse.model_validate(a) for a in activity]


@router.put("/partners/{partner_id}/verification", response_model=PartnerResponse)
async def verify_partner(
    partner_id: str,
    body: PartnerVerificationRequest,
    admin: AdminUser = Depends(get_current_admin),
    admins: AdminRepository = Depends(get_admin_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    params = PartnerVerification(admin, partner_id, body.is_verified)
    partner = VerifyPartner(admins, partners, dispatcher)(params).unwrap()
    return PartnerResponse.model_validate(partner)
