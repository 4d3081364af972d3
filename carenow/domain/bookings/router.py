"""Booking endpoints"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...auth import get_current_admin, get_current_user
from ...dependencies import (
    get_admin_repository,
    get_booking_repository,
    get_dispatcher,
    get_partner_repository,
    get_service_repository,
)
from ..admin.entities import ActivityType, AdminPermission, AdminUser
from ..admin.repository import AdminRepository
from ..admin.usecases import require_permission
from ..catalog.repository import ServiceRepository
from ..notifications.usecases import NotificationDispatcher
from ..partners.repository import PartnerRepository
from ..profiles.entities import UserProfile
from .entities import BookingRequest, BookingStatus
from .repository import BookingRepository
from .schemas import BookingCreate, BookingResponse, CancelRequest, StatusUpdateRequest
from .usecases import (
    BookingAccess,
    BookingDateRangeQuery,
    BookingListQuery,
    BookingStatusOverride,
    CancelBooking,
    CancelBookingRequest,
    CreateBooking,
    GetBookingById,
    GetBookingsByDateRange,
    GetPartnerBookings,
    GetUserBookings,
    ReminderWindow,
    SendBookingReminders,
    UpdateBookingStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _responses(bookings) -> list[BookingResponse]:
    return [BookingResponse.model_validate(b) for b in bookings]


def _status(value: Optional[str]) -> Optional[BookingStatus]:
    return BookingStatus.parse(value) if value else None


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    body: BookingCreate,
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
    services: ServiceRepository = Depends(get_service_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    request = BookingRequest(user_id=user.uid, **body.model_dump())
    booking = CreateBooking(bookings, services, partners, dispatcher)(request).unwrap()
    logger.info(f"📥 Booking {booking.id} created by {user.uid}")
    return BookingResponse.model_validate(booking)


@router.get("/me", response_model=list[BookingResponse])
async def my_bookings(
    status: Optional[str] = Query(None),
    limit: int = Query(20),
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    query = BookingListQuery(user.uid, _status(status), limit)
    return _responses(GetUserBookings(bookings)(query).unwrap())


@router.get("/partner", response_model=list[BookingResponse])
async def partner_bookings(
    status: Optional[str] = Query(None),
    limit: int = Query(20),
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    """Bookings assigned to the signed-in partner"""
    query = BookingListQuery(user.uid, _status(status), limit)
    return _responses(GetPartnerBookings(bookings)(query).unwrap())


@router.get("/range", response_model=list[BookingResponse])
async def bookings_by_date_range(
    start: date = Query(...),
    end: date = Query(...),
    as_partner: bool = Query(False),
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    query = BookingDateRangeQuery(user.uid, start, end, as_partner)
    return _responses(GetBookingsByDateRange(bookings)(query).unwrap())


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
    admins: AdminRepository = Depends(get_admin_repository),
):
    admin = admins.find_admin(user.uid)
    access = BookingAccess(booking_id, user.uid, is_admin=bool(admin and admin.is_active))
    return BookingResponse.model_validate(GetBookingById(bookings)(access).unwrap())


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    body: CancelRequest,
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    params = CancelBookingRequest(booking_id, user.uid, body.reason)
    return BookingResponse.model_validate(CancelBooking(bookings, dispatcher)(params).unwrap())


@router.put("/{booking_id}/status", response_model=BookingResponse)
async def override_status(
    booking_id: str,
    body: StatusUpdateRequest,
    admin: AdminUser = Depends(get_current_admin),
    bookings: BookingRepository = Depends(get_booking_repository),
    admins: AdminRepository = Depends(get_admin_repository),
):
    """Force a booking into any status (admin only)"""
    require_permission(admin, AdminPermission.MANAGE_BOOKINGS)
    status = BookingStatus.parse(body.status)
    booking = UpdateBookingStatus(bookings)(BookingStatusOverride(booking_id, status)).unwrap()
    admins.log_activity(
        admin.uid,
        ActivityType.UPDATE_BOOKING,
        f"Set booking {booking_id} to {status.value}",
        {"booking_id": booking_id, "status": status.value},
    )
    return BookingResponse.model_validate(booking)


@router.post("/reminders", response_model=list[BookingResponse])
async def send_reminders(
    hours_before: int = Query(2),
    admin: AdminUser = Depends(get_current_admin),
    bookings: BookingRepository = Depends(get_booking_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Remind clients of confirmed bookings starting within ``hours_before``; meant for a cron trigger"""
    require_permission(admin, AdminPermission.MANAGE_BOOKINGS)
    reminded = SendBookingReminders(bookings, partners, dispatcher)(ReminderWindow(hours_before)).unwrap()
    return _responses(reminded)
