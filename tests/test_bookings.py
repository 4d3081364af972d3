from datetime import date, datetime, time, timedelta

import pytest

from carenow.domain.bookings.entities import Booking, BookingRequest, BookingStatus
from carenow.domain.bookings.usecases import (
    BookingAccess,
    BookingDateRangeQuery,
    BookingListQuery,
    BookingStatusOverride,
    CancelBooking,
    CancelBookingRequest,
    CompleteBooking,
    ConfirmBooking,
    CreateBooking,
    GetBookingById,
    GetBookingsByDateRange,
    GetPartnerBookings,
    GetUserBookings,
    PartnerBookingAction,
    RejectBooking,
    ReminderWindow,
    SendBookingReminders,
    StartBooking,
    UpdateBookingStatus,
    calculate_total_price,
    validate_booking_request,
)
from carenow.shared.failures import LocationFailure, ValidationFailure


@pytest.fixture
def transitions(bookings, partners, dispatcher):
    return {
        "confirm": ConfirmBooking(bookings, partners, dispatcher),
        "reject": RejectBooking(bookings, partners, dispatcher),
        "start": StartBooking(bookings, partners, dispatcher),
        "complete": CompleteBooking(bookings, partners, dispatcher),
    }


def unread(notifications, uid):
    return notifications.get_user_notifications(uid, 50, True, None, datetime.utcnow())


def test_total_price():
    assert calculate_total_price(120000, 2, False) == 240000
    assert calculate_total_price(120000, 2, True) == 288000


def test_create_booking_with_partner(make_partner, make_booking, catalog, notifications, push_sender):
    make_partner("p1")
    booking = make_booking(partner_id="p1", is_urgent=True, special_instructions="Ring twice")

    assert booking.status == BookingStatus.PENDING
    assert booking.total_price == 288000
    assert booking.service_name
    assert catalog.get_service_by_id("elder_care_basic").booking_count == 1

    [notification] = unread(notifications, "p1")
    assert notification.type == "booking_created"
    assert notification.data["booking_id"] == booking.id
    assert push_sender.sent[0]["token"] == "p1-device"
    assert push_sender.sent[0]["urgent"] is True


def test_open_booking_is_broadcast_to_bookable_partners(make_partner, make_booking, notifications):
    make_partner("p1")
    make_partner("p2", verified=False)
    make_partner("p3", services=("pet_care_basic",))

    booking = make_booking()

    assert booking.partner_id == ""
    assert [n.type for n in unread(notifications, "p1")] == ["new_job_available"]
    assert unread(notifications, "p2") == []
    assert unread(notifications, "p3") == []


def test_partner_must_offer_the_service(make_partner, make_booking):
    make_partner("p1", services=("pet_care_basic",))
    with pytest.raises(ValidationFailure, match="does not offer this service"):
        make_booking(partner_id="p1")


def test_unavailable_partner_cannot_be_booked(make_partner, make_booking, partners):
    make_partner("p1")
    partners.update_partner("p1", is_available=False)
    with pytest.raises(ValidationFailure, match="currently unavailable"):
        make_booking(partner_id="p1")


def test_booking_request_validation(bookings, catalog, partners, dispatcher, client_profile, upcoming_day):
    create = CreateBooking(bookings, catalog, partners, dispatcher)

    def request(**overrides):
        values = dict(
            user_id=client_profile.uid,
            service_id="elder_care_basic",
            scheduled_date=upcoming_day,
            time_slot="09:00",
            hours=2,
            client_address="12 Nguyen Hue",
        )
        values.update(overrides)
        return BookingRequest(**values)

    assert "future" in create(request(scheduled_date=date.today() - timedelta(days=1))).failure.message
    assert "Hours must be between" in create(request(hours=13)).failure.message
    assert "Hours must be between" in create(request(hours=0.25)).failure.message
    assert "Invalid time slot" in create(request(time_slot="9am")).failure.message
    assert "Address is required" in create(request(client_address=" ")).failure.message
    assert isinstance(create(request(client_latitude=120, client_longitude=10)).failure, LocationFailure)
    assert create(request(service_id="missing")).failure.status_code == 404


def test_booking_access(make_booking, bookings):
    booking = make_booking()
    get = GetBookingById(bookings)

    assert get(BookingAccess(booking.id, "client-1")).unwrap().id == booking.id
    assert get(BookingAccess(booking.id, "stranger")).failure.status_code == 403
    assert get(BookingAccess(booking.id, "admin-1", is_admin=True)).is_success


def test_open_booking_confirmed_by_eligible_partner(make_partner, make_booking, transitions, notifications):
    make_partner("p1")
    make_partner("p2", services=("pet_care_basic",))
    booking = make_booking()

    refused = transitions["confirm"](PartnerBookingAction(booking.id, "p2"))
    assert refused.failure.message == "You do not offer this service"

    confirmed = transitions["confirm"](PartnerBookingAction(booking.id, "p1")).unwrap()
    assert confirmed.partner_id == "p1"
    assert confirmed.status == BookingStatus.CONFIRMED
    assert confirmed.confirmed_at is not None
    assert [n.type for n in unread(notifications, "client-1")] == ["booking_confirmed"]


def test_assigned_booking_lifecycle(make_partner, make_booking, transitions):
    make_partner("p1")
    booking = make_booking(partner_id="p1")

    early = transitions["complete"](PartnerBookingAction(booking.id, "p1"))
    assert early.failure.message == "Cannot complete a booking that is pending"

    transitions["confirm"](PartnerBookingAction(booking.id, "p1")).unwrap()
    started = transitions["start"](PartnerBookingAction(booking.id, "p1")).unwrap()
    assert started.status == BookingStatus.IN_PROGRESS
    assert started.started_at is not None

    completed = transitions["complete"](PartnerBookingAction(booking.id, "p1")).unwrap()
    assert completed.is_completed
    assert completed.completed_at is not None


def test_only_assigned_partner_can_act(make_partner, make_booking, transitions):
    make_partner("p1")
    make_partner("p2")
    booking = make_booking(partner_id="p1")

    assert transitions["confirm"](PartnerBookingAction(booking.id, "p2")).failure.status_code == 403
    assert transitions["reject"](PartnerBookingAction(booking.id, "p2", "busy")).failure.status_code == 403


def test_reject_needs_reason_and_assignment(make_partner, make_booking, transitions):
    make_partner("p1")
    open_booking = make_booking()
    assigned = make_booking(partner_id="p1")

    assert transitions["reject"](PartnerBookingAction(assigned.id, "p1")).failure.message == (
        "Rejection reason is required"
    )
    assert transitions["reject"](PartnerBookingAction(open_booking.id, "p1", "busy")).failure.status_code == 403

    rejected = transitions["reject"](PartnerBookingAction(assigned.id, "p1", " Sick today ")).unwrap()
    assert rejected.status == BookingStatus.REJECTED
    assert rejected.rejection_reason == "Sick today"


def test_cancel_booking(make_partner, make_booking, bookings, dispatcher, notifications):
    make_partner("p1")
    booking = make_booking(partner_id="p1")
    cancel = CancelBooking(bookings, dispatcher)

    assert cancel(CancelBookingRequest(booking.id, "someone-else", "changed plans")).failure.status_code == 403
    assert cancel(CancelBookingRequest(booking.id, "client-1", "")).is_failure

    cancelled = cancel(CancelBookingRequest(booking.id, "client-1", "changed plans")).unwrap()
    assert cancelled.is_cancelled
    assert cancelled.cancellation_reason == "changed plans"
    assert "booking_cancelled" in [n.type for n in unread(notifications, "p1")]

    again = cancel(CancelBookingRequest(booking.id, "client-1", "changed plans"))
    assert "cannot be cancelled" in again.failure.message


def test_cancellation_window():
    start = datetime(2026, 5, 10, 9, 0)
    booking = Booking(
        id="b1",
        user_id="u1",
        service_id="s",
        service_name="S",
        scheduled_date=start.date(),
        time_slot="09:00",
        hours=2,
        total_price=1,
        client_address="a",
    )
    assert booking.can_be_cancelled(now=start - timedelta(hours=3))
    assert not booking.can_be_cancelled(now=start - timedelta(hours=2))
    assert not booking.can_be_cancelled(now=start - timedelta(minutes=30))
    assert booking.end_datetime == datetime(2026, 5, 10, 11, 0)
    assert booking.formatted_date_time == "10/05/2026 09:00"


def test_user_bookings_and_date_range(make_booking, bookings, upcoming_day):
    make_booking()
    make_booking(scheduled_date=upcoming_day + timedelta(days=10))

    listed = GetUserBookings(bookings)(BookingListQuery("client-1")).unwrap()
    assert len(listed) == 2
    assert GetUserBookings(bookings)(BookingListQuery("client-1", limit=0)).is_failure
    assert GetUserBookings(bookings)(BookingListQuery("client-1", BookingStatus.COMPLETED)).unwrap() == []

    in_range = GetBookingsByDateRange(bookings)(
        BookingDateRangeQuery("client-1", upcoming_day, upcoming_day + timedelta(days=1))
    ).unwrap()
    assert len(in_range) == 1
    assert GetBookingsByDateRange(bookings)(
        BookingDateRangeQuery("client-1", upcoming_day, upcoming_day - timedelta(days=1))
    ).is_failure


def test_admin_status_override_stamps_time(make_booking, bookings):
    booking = make_booking()
    updated = UpdateBookingStatus(bookings)(BookingStatusOverride(booking.id, BookingStatus.COMPLETED)).unwrap()
    assert updated.is_completed
    assert updated.completed_at is not None


def test_status_parsing():
    assert BookingStatus.from_string("In-Progress") == BookingStatus.IN_PROGRESS
    assert BookingStatus.from_string("inprogress") == BookingStatus.IN_PROGRESS
    assert BookingStatus.from_string("weird") == BookingStatus.PENDING
    assert BookingStatus.CANCELLED.display_name == "Đã hủy"


def test_strict_status_parsing():
    assert BookingStatus.parse("In-Progress") == BookingStatus.IN_PROGRESS
    assert BookingStatus.parse(" completed ") == BookingStatus.COMPLETED
    with pytest.raises(ValidationFailure, match="Invalid booking status: compleetd"):
        BookingStatus.parse("compleetd")


def test_booking_must_start_after_local_now(upcoming_day):
    request = BookingRequest(
        user_id="client-1",
        service_id="elder_care_basic",
        scheduled_date=upcoming_day,
        time_slot="08:00",
        hours=2,
        client_address="12 Nguyen Hue, District 1",
    )
    validate_booking_request(request, now=datetime.combine(upcoming_day, time(7, 0)))
    with pytest.raises(ValidationFailure, match="Scheduled time must be in the future"):
        validate_booking_request(request, now=datetime.combine(upcoming_day, time(10, 0)))


# ============================================================================
# SCHEDULE CONFLICTS
# ============================================================================


def test_confirming_overlapping_booking_is_rejected(make_partner, make_booking, transitions, bookings):
    make_partner("p1")
    first = make_booking(partner_id="p1")
    overlapping = make_booking(partner_id="p1", time_slot="10:00")
    afternoon = make_booking(partner_id="p1", time_slot="13:00")

    transitions["confirm"](PartnerBookingAction(first.id, "p1")).unwrap()

    clash = transitions["confirm"](PartnerBookingAction(overlapping.id, "p1"))
    assert isinstance(clash.failure, ValidationFailure)
    assert "overlaps this one" in clash.failure.message
    assert bookings.get_booking(overlapping.id).status == BookingStatus.PENDING

    assert transitions["confirm"](PartnerBookingAction(afternoon.id, "p1")).is_success


def test_open_booking_cannot_be_taken_over_a_running_job(make_partner, make_booking, transitions):
    make_partner("p1")
    assigned = make_booking(partner_id="p1")
    transitions["confirm"](PartnerBookingAction(assigned.id, "p1")).unwrap()
    transitions["start"](PartnerBookingAction(assigned.id, "p1")).unwrap()

    open_booking = make_booking(time_slot="10:30")
    assert transitions["confirm"](PartnerBookingAction(open_booking.id, "p1")).is_failure


def test_booking_overlap():
    booking = Booking(
        id="b1",
        user_id="u1",
        service_id="s",
        service_name="S",
        scheduled_date=date(2026, 5, 10),
        time_slot="09:00",
        hours=2,
        total_price=1,
        client_address="a",
    )
    assert booking.overlaps(datetime(2026, 5, 10, 10, 0), datetime(2026, 5, 10, 12, 0))
    assert not booking.overlaps(datetime(2026, 5, 10, 11, 0), datetime(2026, 5, 10, 13, 0))
    assert not booking.overlaps(datetime(2026, 5, 10, 7, 0), datetime(2026, 5, 10, 9, 0))


# ============================================================================
# REMINDERS
# ============================================================================


def test_booking_reminders_are_sent_once(
    make_partner, make_booking, transitions, bookings, partners, dispatcher, notifications, upcoming_day
):
    make_partner("p1", name="Tran Thi B")
    booking = make_booking(partner_id="p1")
    make_booking(partner_id="p1", time_slot="13:00")
    transitions["confirm"](PartnerBookingAction(booking.id, "p1")).unwrap()

    remind = SendBookingReminders(bookings, partners, dispatcher)
    window = ReminderWindow(hours_before=2, now=datetime.combine(upcoming_day, time(8, 0)))

    [reminded] = remind(window).unwrap()
    assert reminded.id == booking.id
    assert reminded.reminder_sent_at is not None

    [notification] = [n for n in unread(notifications, "client-1") if n.type == "booking_reminder"]
    assert notification.data["booking_id"] == booking.id
    assert notification.data["partner_name"] == "Tran Thi B"
    assert notification.category == "reminder"

    assert remind(window).unwrap() == []


def test_booking_reminders_skip_bookings_outside_window(
    make_partner, make_booking, transitions, bookings, partners, dispatcher, upcoming_day
):
    make_partner("p1")
    booking = make_booking(partner_id="p1")
    transitions["confirm"](PartnerBookingAction(booking.id, "p1")).unwrap()
    remind = SendBookingReminders(bookings, partners, dispatcher)

    too_early = ReminderWindow(hours_before=2, now=datetime.combine(upcoming_day, time(6, 0)))
    assert remind(too_early).unwrap() == []
    already_started = ReminderWindow(hours_before=2, now=datetime.combine(upcoming_day, time(9, 30)))
    assert remind(already_started).unwrap() == []

    assert remind(ReminderWindow(hours_before=0)).is_failure
    assert remind(ReminderWindow(hours_before=49)).failure.message == (
        "Reminder window must be between 1 and 48 hours"
    )


def test_partner_bookings(make_partner, make_booking, transitions, bookings):
    make_partner("p1")
    make_partner("p2")
    first = make_booking(partner_id="p1")
    make_booking(partner_id="p1", time_slot="13:00")
    make_booking(partner_id="p2")
    make_booking()
    transitions["confirm"](PartnerBookingAction(first.id, "p1")).unwrap()

    get = GetPartnerBookings(bookings)
    assert len(get(BookingListQuery("p1")).unwrap()) == 2
    confirmed = get(BookingListQuery("p1", BookingStatus.CONFIRMED)).unwrap()
    assert [b.id for b in confirmed] == [first.id]
    assert get(BookingListQuery("")).failure.message == "User ID cannot be empty"
    assert get(BookingListQuery("p1", limit=101)).is_failure
