from datetime import datetime

import pytest

from carenow.domain.bookings.entities import BookingStatus, PaymentStatus
from carenow.domain.bookings.usecases import BookingListQuery
from carenow.domain.clients.entities import (
    PaymentMethodType,
    PaymentRequest,
    PaymentResultStatus,
    Review,
    ReviewRequest,
)
from carenow.domain.clients.repository import SqlAlchemyReviewRepository
from carenow.domain.clients.usecases import (
    CanReviewBooking,
    CreateReview,
    GetAvailablePaymentMethods,
    GetBookingReview,
    GetClientBookings,
    GetPartnerReviews,
    PartnerReviewsQuery,
    ProcessPayment,
    RefundPayment,
    SearchAvailablePartners,
)
from carenow.domain.partners.usecases import AvailablePartnersQuery
from carenow.shared.failures import PaymentFailure, ValidationFailure


@pytest.fixture
def pay(bookings, payments, dispatcher):
    return ProcessPayment(bookings, payments, dispatcher)


@pytest.fixture
def completed_booking(make_partner, make_booking, bookings):
    make_partner("p1")
    booking = make_booking(partner_id="p1")
    return bookings.update_booking(booking.id, status=BookingStatus.COMPLETED, completed_at=datetime.utcnow())


def payment_for(booking, method=PaymentMethodType.MOCK, **fields):
    values = dict(
        booking_id=booking.id,
        user_id=booking.user_id,
        amount=booking.total_price,
        payment_method=method,
    )
    values.update(fields)
    return PaymentRequest(**values)


# ============================================================================
# PAYMENTS
# ============================================================================


def test_payment_methods():
    methods = {m.type: m for m in GetAvailablePaymentMethods()().unwrap()}
    assert methods[PaymentMethodType.MOCK].is_enabled
    assert methods[PaymentMethodType.CASH].is_enabled
    assert not methods[PaymentMethodType.CASH].is_online
    assert not methods[PaymentMethodType.STRIPE].is_enabled


def test_mock_payment_marks_booking_paid(pay, make_partner, make_booking, bookings, payments, notifications):
    make_partner("p1")
    booking = make_booking(partner_id="p1")

    result = pay(payment_for(booking)).unwrap()
    assert result.success
    assert result.status == PaymentResultStatus.COMPLETED
    assert result.transaction_id.startswith("mock_")

    paid = bookings.get_booking(booking.id)
    assert paid.payment_status == PaymentStatus.PAID
    assert paid.payment_method == "mock"
    assert paid.payment_transaction_id == result.transaction_id

    [record] = payments.get_booking_payments(booking.id)
    assert record.status == PaymentResultStatus.COMPLETED
    types = [n.type for n in notifications.get_user_notifications("p1", 50, False, None, datetime.utcnow())]
    assert "payment_received" in types

    again = pay(payment_for(booking))
    assert again.failure.message == "This booking has already been paid"


def test_cash_payment_stays_unpaid(pay, make_booking, bookings):
    booking = make_booking()
    result = pay(payment_for(booking, PaymentMethodType.CASH)).unwrap()

    assert result.status == PaymentResultStatus.PENDING
    stored = bookings.get_booking(booking.id)
    assert stored.payment_status == PaymentStatus.UNPAID
    assert stored.payment_method == "cash"


def test_disabled_method_is_recorded_as_failed(pay, make_booking, payments):
    booking = make_booking()
    result = pay(payment_for(booking, PaymentMethodType.MOMO))

    assert isinstance(result.failure, PaymentFailure)
    assert result.failure.status_code == 402
    [record] = payments.get_booking_payments(booking.id)
    assert record.status == PaymentResultStatus.FAILED
    assert record.error_code == "method_unavailable"


def test_payment_checks(pay, make_booking, bookings):
    booking = make_booking()

    assert pay(payment_for(booking, amount=1)).failure.message == (
        "Payment amount does not match the booking total"
    )
    assert pay(payment_for(booking, amount=0)).is_failure
    assert pay(payment_for(booking, user_id="someone-else")).failure.status_code == 403

    bookings.update_booking(booking.id, status=BookingStatus.CANCELLED)
    assert pay(payment_for(booking)).failure.message == "Cannot pay for a cancelled booking"


def test_refund(pay, make_booking, bookings, payments):
    booking = make_booking()
    refund = RefundPayment(bookings, payments)
    assert isinstance(refund(booking.id).failure, PaymentFailure)

    pay(payment_for(booking)).unwrap()
    result = refund(booking.id).unwrap()

    assert result.status == PaymentResultStatus.REFUNDED
    assert bookings.get_booking(booking.id).payment_status == PaymentStatus.REFUNDED
    statuses = {p.status for p in payments.get_booking_payments(booking.id)}
    assert statuses == {PaymentResultStatus.COMPLETED, PaymentResultStatus.REFUNDED}


# ============================================================================
# REVIEWS
# ============================================================================


def test_review_updates_partner_rating(completed_booking, make_booking, bookings, reviews, partners, dispatcher):
    create = CreateReview(bookings, reviews, partners, dispatcher)
    review = create(ReviewRequest(completed_booking.id, "client-1", 5, comment="  Very kind and careful  ")).unwrap()

    assert review.partner_id == "p1"
    assert review.comment == "Very kind and careful"

    second = make_booking(partner_id="p1")
    bookings.update_booking(second.id, status=BookingStatus.COMPLETED)
    create(ReviewRequest(second.id, "client-1", 2)).unwrap()

    partner = partners.get_partner("p1")
    assert partner.rating == 3.5
    assert partner.total_reviews == 2
    assert [r.rating for r in GetPartnerReviews(reviews)(PartnerReviewsQuery("p1")).unwrap()] == [2, 5]


def test_review_only_once_and_only_when_completed(completed_booking, make_booking, bookings, reviews, partners, dispatcher):
    can_review = CanReviewBooking(bookings, reviews)
    create = CreateReview(bookings, reviews, partners, dispatcher)
    request = ReviewRequest(completed_booking.id, "client-1", 4)

    assert can_review(request).unwrap()
    assert not can_review(ReviewRequest(completed_booking.id, "stranger", 4)).unwrap()

    create(request).unwrap()
    assert not can_review(request).unwrap()
    assert create(request).failure.message == "User cannot review this booking"
    assert GetBookingReview(reviews)(completed_booking.id).unwrap().rating == 4

    pending = make_booking(partner_id="p1")
    assert create(ReviewRequest(pending.id, "client-1", 4)).failure.message == "User cannot review this booking"


class StaleReviewRepository(SqlAlchemyReviewRepository):
    """Never sees an existing review, like a request racing another one"""

    def get_booking_review(self, booking_id):
        return None


def test_concurrent_duplicate_review_is_a_validation_error(completed_booking, db, bookings, partners, dispatcher):
    create = CreateReview(bookings, StaleReviewRepository(db), partners, dispatcher)
    create(ReviewRequest(completed_booking.id, "client-1", 5)).unwrap()

    duplicate = create(ReviewRequest(completed_booking.id, "client-1", 1))
    assert isinstance(duplicate.failure, ValidationFailure)
    assert duplicate.failure.status_code == 400
    assert duplicate.failure.message == "This booking has already been reviewed"
    assert partners.get_partner("p1").total_reviews == 1


def test_review_validation(completed_booking, bookings, reviews, partners, dispatcher):
    create = CreateReview(bookings, reviews, partners, dispatcher)
    assert create(ReviewRequest(completed_booking.id, "client-1", 6)).failure.message == (
        "Rating must be between 1 and 5"
    )
    assert create(ReviewRequest(completed_booking.id, "client-1", 4, comment="ok")).is_failure
    assert create(ReviewRequest(completed_booking.id, "client-1", 4, tags=["t"] * 11)).is_failure


def test_review_display():
    review = Review(id="r", booking_id="b", user_id="u", partner_id="p", service_id="s", rating=3)
    assert review.stars_display == "★★★☆☆"
    assert review.is_neutral
    assert not review.is_positive and not review.is_negative


# ============================================================================
# DISCOVERY
# ============================================================================


def test_client_bookings(make_booking, bookings):
    make_booking()
    make_booking(time_slot="14:00")

    get = GetClientBookings(bookings)
    assert len(get(BookingListQuery("client-1")).unwrap()) == 2
    assert get(BookingListQuery("client-1", BookingStatus.CANCELLED)).unwrap() == []
    assert get(BookingListQuery("nobody")).unwrap() == []
    assert get(BookingListQuery("client-1", limit=0)).failure.message == "Limit must be between 1 and 100"


def test_search_available_partners(make_partner, partners, bookings, upcoming_day):
    make_partner("p1")
    make_partner("p2", services=("pet_care_basic",))
    make_partner("p3", verified=False)

    search = SearchAvailablePartners(partners, bookings)
    matches = search(AvailablePartnersQuery("elder_care_basic", upcoming_day, "09:00")).unwrap()
    assert [m.partner.uid for m in matches] == ["p1"]
    assert search(AvailablePartnersQuery("elder_care_basic", upcoming_day, "9h")).is_failure
