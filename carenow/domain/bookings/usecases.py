import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ...config import URGENT_FEE_MULTIPLIER
from ...shared.clock import local_now
from ...shared.failures import LocationFailure, ValidationFailure, forbidden
from ...shared.usecase import UseCase
from ...shared.validators import (
    MAX_BOOKING_HOURS,
    MIN_BOOKING_HOURS,
    ensure,
    is_blank,
    is_valid_booking_hours,
    is_valid_coordinates,
    is_valid_time_slot,
    time_to_minutes,
)
from ..catalog.repository import ServiceRepository
from ..notifications.entities import NotificationCategory, NotificationPriority, NotificationTypes
from ..notifications.usecases import NotificationDispatcher
from ..partners.repository import PartnerRepository
from .entities import Booking, BookingRequest, BookingStatus, NewBooking
from .repository import BookingRepository

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 100
MAX_REMINDER_HOURS = 48


def calculate_total_price(base_price: float, hours: float, is_urgent: bool) -> float:
    total = base_price * hours
    if is_urgent:
        total *= URGENT_FEE_MULTIPLIER
    return round(total, 2)


def validate_booking_request(request: BookingRequest, now: Optional[datetime] = None) -> None:
    ensure(not is_blank(request.user_id), "User ID is required")
    ensure(not is_blank(request.service_id), "Service ID is required")
    ensure(not is_blank(request.client_address), "Address is required")
    ensure(is_valid_time_slot(request.time_slot), "Invalid time slot format. Expected HH:MM")
    ensure(
        is_valid_booking_hours(request.hours),
        f"Hours must be between {MIN_BOOKING_HOURS} and {MAX_BOOKING_HOURS}",
    )
    if request.client_latitude is not None or request.client_longitude is not None:
        if not is_valid_coordinates(request.client_latitude, request.client_longitude):
            raise LocationFailure("Invalid client location")

    start = slot_start(request.scheduled_date, request.time_slot)
    ensure(start > (now or local_now()), "Scheduled time must be in the future")


def slot_start(day: date, time_slot: str) -> datetime:
    return datetime.combine(day, datetime.min.time()) + timedelta(minutes=time_to_minutes(time_slot))


def find_schedule_conflict(
    bookings: BookingRepository,
    partner_id: str,
    day: date,
    time_slot: str,
    hours: float,
    exclude_id: Optional[str] = None,
) -> Optional[Booking]:
    """Confirmed or running booking of the partner that overlaps the slot"""
    start = slot_start(day, time_slot)
    end = start + timedelta(hours=hours)
    for booking in bookings.get_active_partner_bookings(partner_id, day):
        if booking.id != exclude_id and booking.overlaps(start, end):
            return booking
    return None


class CreateBooking(UseCase):
    def __init__(
        self,
        bookings: BookingRepository,
        services: ServiceRepository,
        partners: PartnerRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.bookings = bookings
        self.services = services
        self.partners = partners
        self.dispatcher = dispatcher

    def execute(self, request: BookingRequest) -> Booking:
        validate_booking_request(request)

        service = self.services.get_service_by_id(request.service_id)
        ensure(service.is_active, "This service is currently unavailable")

        partner_id = ""
        if request.partner_id:
            partner = self.partners.get_partner(request.partner_id)
            ensure(partner.provides_service(service.id), "Selected partner does not offer this service")
            ensure(partner.is_available, "Selected partner is currently unavailable")
            partner_id = partner.uid

        booking = self.bookings.create_booking(
            NewBooking(
                user_id=request.user_id,
                partner_id=partner_id,
                service_id=service.id,
                service_name=service.name,
                scheduled_date=request.scheduled_date,
                time_slot=request.time_slot,
                hours=request.hours,
                total_price=calculate_total_price(service.base_price, request.hours, request.is_urgent),
                client_address=request.client_address.strip(),
                client_latitude=request.client_latitude,
                client_longitude=request.client_longitude,
                special_instructions=request.special_instructions,
                is_urgent=request.is_urgent,
            )
        )
        self.services.increment_booking_count(service.id)
        self._announce(booking)
        return booking

    def _announce(self, booking: Booking) -> None:
        priority = NotificationPriority.HIGH if booking.is_urgent else NotificationPriority.NORMAL
        data = {"booking_id": booking.id, "service_id": booking.service_id}
        if booking.partner_id:
            self.dispatcher.notify(
                booking.partner_id,
                NotificationTypes.BOOKING_CREATED,
                "Yêu cầu đặt lịch mới",
                f"{booking.service_name} - {booking.formatted_date_time}",
                category=NotificationCategory.JOB,
                priority=priority,
                data=data,
            )
            return
        for partner in self.partners.get_bookable_partners(booking.service_id):
            self.dispatcher.notify(
                partner.uid,
                NotificationTypes.NEW_JOB_AVAILABLE,
                "Có công việc mới",
                f"{booking.service_name} - {booking.formatted_date_time}",
                category=NotificationCategory.JOB,
                priority=priority,
                data=data,
            )


@dataclass
class BookingAccess:
    booking_id: str
    requester_id: str
    is_admin: bool = False


class GetBookingById(UseCase):
    def __init__(self, bookings: BookingRepository):
        self.bookings = bookings

    def execute(self, params: BookingAccess) -> Booking:
        ensure(not is_blank(params.booking_id), "Booking ID cannot be empty")
        booking = self.bookings.get_booking(params.booking_id)
        if not params.is_admin and not booking.involves(params.requester_id):
            raise forbidden("You do not have access to this booking")
        return booking


@dataclass
class BookingListQuery:
    uid: str
    status: Optional[BookingStatus] = None
    limit: int = 20


def _validate_list_query(params: BookingListQuery) -> None:
    ensure(not is_blank(params.uid), "User ID cannot be empty")
    ensure(0 < params.limit <= MAX_LIST_LIMIT, f"Limit must be between 1 and {MAX_LIST_LIMIT}")


class GetUserBookings(UseCase):
    def __init__(self, bookings: BookingRepository):
        self.bookings = bookings

    def execute(self, params: BookingListQuery) -> list[Booking]:
        _validate_list_query(params)
        return self.bookings.get_user_bookings(params.uid, params.status, params.limit)


class GetPartnerBookings(UseCase):
    def __init__(self, bookings: BookingRepository):
        self.bookings = bookings

    def execute(self, params: BookingListQuery) -> list[Booking]:
        _validate_list_query(params)
        return self.bookings.get_partner_bookings(params.uid, params.status, params.limit)


@dataclass
class BookingDateRangeQuery:
    uid: str
    start: date
    end: date
    is_partner: bool = False


class GetBookingsByDateRange(UseCase):
    def __init__(self, bookings: BookingRepository):
        self.bookings = bookings

    def execute(self, params: BookingDateRangeQuery) -> list[Booking]:
        ensure(not is_blank(params.uid), "User ID cannot be empty")
        ensure(params.start <= params.end, "Start date must be before end date")
        return self.bookings.get_bookings_by_date_range(
            params.uid, params.start, params.end, params.is_partner
        )


@dataclass
class BookingStatusOverride:
    booking_id: str
    status: BookingStatus


class UpdateBookingStatus(UseCase):
    """Administrative status override; skips the transition rules"""

    def __init__(self, bookings: BookingRepository):
        self.bookings = bookings

    def execute(self, params: BookingStatusOverride) -> Booking:
        ensure(not is_blank(params.booking_id), "Booking ID cannot be empty")
        now = datetime.utcnow()
        stamps = {
            BookingStatus.CONFIRMED: "confirmed_at",
            BookingStatus.IN_PROGRESS: "started_at",
            BookingStatus.COMPLETED: "completed_at",
            BookingStatus.CANCELLED: "cancelled_at",
        }
        changes = {"status": params.status}
        if params.status in stamps:
            changes[stamps[params.status]] = now
        logger.info(f"🛠️ Booking {params.booking_id} status overridden to {params.status.value}")
        return self.bookings.update_booking(params.booking_id, **changes)


@dataclass
class PartnerBookingAction:
    booking_id: str
    partner_id: str
    reason: Optional[str] = None


def _require_status(booking: Booking, expected: BookingStatus, action: str) -> None:
    if booking.status != expected:
        raise ValidationFailure(
            f"Cannot {action} a booking that is {booking.status.value.replace('_', ' ')}"
        )


def _require_assigned(booking: Booking, partner_id: str) -> None:
    if booking.partner_id != partner_id:
        raise forbidden("This booking is not assigned to you")


class _BookingTransition(UseCase):
    def __init__(
        self,
        bookings: BookingRepository,
        partners: PartnerRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.bookings = bookings
        self.partners = partners
        self.dispatcher = dispatcher

    def _notify_client(self, booking: Booking, notification_type: str, title: str, body: str) -> None:
        self.dispatcher.notify(
            booking.user_id,
            notification_type,
            title,
            body,
            category=NotificationCategory.BOOKING,
            priority=NotificationPriority.HIGH,
            data={"booking_id": booking.id, "status": booking.status.value},
        )


class ConfirmBooking(_BookingTransition):
    """Partner accepts a pending booking; open bookings get assigned to them"""

    def execute(self, params: PartnerBookingAction) -> Booking:
        ensure(not is_blank(params.partner_id), "Partner ID cannot be empty")
        booking = self.bookings.get_booking(params.booking_id)
        _require_status(booking, BookingStatus.PENDING, "confirm")
        if booking.partner_id:
            _require_assigned(booking, params.partner_id)
        else:
            partner = self.partners.get_partner(params.partner_id)
            ensure(partner.provides_service(booking.service_id), "You do not offer this service")

        conflict = find_schedule_conflict(
            self.bookings,
            params.partner_id,
            booking.scheduled_date,
            booking.time_slot,
            booking.hours,
            exclude_id=booking.id,
        )
        if conflict:
            raise ValidationFailure(
                f"You already have a booking at {conflict.formatted_date_time} that overlaps this one"
            )

        booking = self.bookings.update_booking(
            booking.id,
            partner_id=params.partner_id,
            status=BookingStatus.CONFIRMED,
            confirmed_at=datetime.utcnow(),
        )
        self._notify_client(
            booking,
            NotificationTypes.BOOKING_CONFIRMED,
            "Đặt lịch đã được xác nhận",
            f"{booking.service_name} - {booking.formatted_date_time}",
        )
        return booking


class RejectBooking(_BookingTransition):
    def execute(self, params: PartnerBookingAction) -> Booking:
        ensure(not is_blank(params.reason), "Rejection reason is required")
        booking = self.bookings.get_booking(params.booking_id)
        _require_status(booking, BookingStatus.PENDING, "reject")
        _require_assigned(booking, params.partner_id)

        booking = self.bookings.update_booking(
            booking.id,
            status=BookingStatus.REJECTED,
            rejection_reason=params.reason.strip(),
        )
        self._notify_client(
            booking,
            NotificationTypes.BOOKING_CANCELLED,
            "Đặt lịch bị từ chối",
            f"{booking.service_name}: {booking.rejection_reason}",
        )
        return booking


class StartBooking(_BookingTransition):
    def execute(self, params: PartnerBookingAction) -> Booking:
        booking = self.bookings.get_booking(params.booking_id)
        _require_assigned(booking, params.partner_id)
        _require_status(booking, BookingStatus.CONFIRMED, "start")

        booking = self.bookings.update_booking(
            booking.id, status=BookingStatus.IN_PROGRESS, started_at=datetime.utcnow()
        )
        self._notify_client(
            booking,
            NotificationTypes.BOOKING_STARTED,
            "Dịch vụ đã bắt đầu",
            f"{booking.service_name} đang được thực hiện",
        )
        return booking


class CompleteBooking(_BookingTransition):
    def execute(self, params: PartnerBookingAction) -> Booking:
        booking = self.bookings.get_booking(params.booking_id)
        _require_assigned(booking, params.partner_id)
        _require_status(booking, BookingStatus.IN_PROGRESS, "complete")

        booking = self.bookings.update_booking(
            booking.id, status=BookingStatus.COMPLETED, completed_at=datetime.utcnow()
        )
        self._notify_client(
            booking,
            NotificationTypes.BOOKING_COMPLETED,
            "Dịch vụ đã hoàn thành",
            f"Hãy đánh giá {booking.service_name} của bạn",
        )
        return booking


@dataclass
class CancelBookingRequest:
    booking_id: str
    user_id: str
    reason: str


class CancelBooking(UseCase):
    def __init__(self, bookings: BookingRepository, dispatcher: NotificationDispatcher):
        self.bookings = bookings
        self.dispatcher = dispatcher

    def execute(self, params: CancelBookingRequest) -> Booking:
        ensure(not is_blank(params.reason), "Cancellation reason is required")
        booking = self.bookings.get_booking(params.booking_id)
        if booking.user_id != params.user_id:
            raise forbidden("You can only cancel your own bookings")
        if not booking.can_be_cancelled():
            raise ValidationFailure(
                "Booking cannot be cancelled. Bookings can only be cancelled more than 2 hours before the start time"
            )

        booking = self.bookings.update_booking(
            booking.id,
            status=BookingStatus.CANCELLED,
            cancellation_reason=params.reason.strip(),
            cancelled_at=datetime.utcnow(),
        )
        logger.info(f"❌ Booking {booking.id} cancelled by {params.user_id}")
        if booking.partner_id:
            self.dispatcher.notify(
                booking.partner_id,
                NotificationTypes.BOOKING_CANCELLED,
                "Đặt lịch đã bị hủy",
                f"{booking.service_name} - {booking.formatted_date_time}",
                category=NotificationCategory.JOB,
                priority=NotificationPriority.HIGH,
                data={"booking_id": booking.id, "reason": booking.cancellation_reason},
            )
        return booking


@dataclass
class ReminderWindow:
    hours_before: int = 2
    now: Optional[datetime] = None


class SendBookingReminders(UseCase):
    """Reminds clients of confirmed bookings starting within the window, once per booking"""

    def __init__(
        self,
        bookings: BookingRepository,
        partners: PartnerRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.bookings = bookings
        self.partners = partners
        self.dispatcher = dispatcher

    def execute(self, params: ReminderWindow) -> list[Booking]:
        ensure(
            0 < params.hours_before <= MAX_REMINDER_HOURS,
            f"Reminder window must be between 1 and {MAX_REMINDER_HOURS} hours",
        )
        now = params.now or local_now()
        horizon = now + timedelta(hours=params.hours_before)

        reminded = []
        for booking in self.bookings.get_unreminded_bookings(now.date(), horizon.date()):
            if not now < booking.start_datetime <= horizon:
                continue
            partner = self.partners.find_partner(booking.partner_id)
            partner_name = partner.name if partner else "đối tác"
            self.dispatcher.notify(
                booking.user_id,
                NotificationTypes.BOOKING_REMINDER,
                "Nhắc nhở dịch vụ",
                f"Dịch vụ {booking.service_name} với {partner_name} sẽ bắt đầu lúc {booking.time_slot}",
                category=NotificationCategory.REMINDER,
                priority=NotificationPriority.NORMAL,
                data={
                    "booking_id": booking.id,
                    "partner_id": booking.partner_id,
                    "partner_name": partner_name,
                    "time_slot": booking.time_slot,
                    "hours_before": params.hours_before,
                },
            )
            reminded.append(self.bookings.update_booking(booking.id, reminder_sent_at=datetime.utcnow()))

        logger.info(f"⏰ Sent {len(reminded)} booking reminders")
        return reminded
