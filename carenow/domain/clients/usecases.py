"""Client-facing use cases: bookings, partner discovery, payments and reviews"""

import logging
from dataclasses import dataclass
from datetime import datetime

from ...config import DEFAULT_CURRENCY
from ...services.payment_gateway import (
    AVAILABLE_METHODS,
    MockPaymentGateway,
    enabled_methods,
    gateway_for,
)
from ...shared.failures import PaymentFailure, ValidationFailure, forbidden
from ...shared.usecase import UseCase
from ...shared.validators import ensure, is_blank
from ..bookings.entities import Booking, PaymentStatus
from ..bookings.repository import BookingRepository
from ..bookings.usecases import BookingListQuery, GetUserBookings
from ..notifications.entities import NotificationCategory, NotificationPriority, NotificationTypes
from ..notifications.usecases import NotificationDispatcher
from ..partners.repository import PartnerRepository
from ..partners.usecases import AvailablePartnersQuery, GetAvailablePartners, PartnerMatch
from .entities import (
    PaymentMethod,
    PaymentMethodType,
    PaymentRequest,
    PaymentResult,
    PaymentResultStatus,
    Review,
    ReviewRequest,
)
from .repository import PaymentRepository, ReviewRepository

logger = logging.getLogger(__name__)

MIN_COMMENT_LENGTH = 5
MAX_COMMENT_LENGTH = 500
MAX_REVIEW_TAGS = 10
MAX_REVIEW_LIMIT = 100


class GetClientBookings(UseCase):
    def __init__(self, bookings: BookingRepository):
        self.get_user_bookings = GetUserBookings(bookings)

    def execute(self, params: BookingListQuery) -> list[Booking]:
        return self.get_user_bookings(params).unwrap()


class SearchAvailablePartners(UseCase):
    def __init__(self, partners: PartnerRepository, bookings: BookingRepository):
        self.get_available_partners = GetAvailablePartners(partners, bookings)

    def execute(self, query: AvailablePartnersQuery) -> list[PartnerMatch]:
        return self.get_available_partners(query).unwrap()


class GetAvailablePaymentMethods(UseCase):
    def execute(self, params) -> list[PaymentMethod]:
        return list(AVAILABLE_METHODS)


class ProcessPayment(UseCase):
    def __init__(
        self,
        bookings: BookingRepository,
        payments: PaymentRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.bookings = bookings
        self.payments = payments
        self.dispatcher = dispatcher

    def execute(self, request: PaymentRequest) -> PaymentResult:
        ensure(not is_blank(request.booking_id), "Booking ID cannot be empty")
        ensure(request.amount > 0, "Payment amount must be greater than 0")

        booking = self.bookings.get_booking(request.booking_id)
        if booking.user_id != request.user_id:
            raise forbidden("You can only pay for your own bookings")
        ensure(not booking.is_paid, "This booking has already been paid")
        ensure(
            not (booking.is_cancelled or booking.is_rejected),
            "Cannot pay for a cancelled booking",
        )
        ensure(
            abs(request.amount - booking.total_price) < 0.01,
            "Payment amount does not match the booking total",
        )

        if request.payment_method not in enabled_methods():
            result = PaymentResult(
                success=False,
                status=PaymentResultStatus.FAILED,
                amount=request.amount,
                currency=request.currency,
                error_message="Payment method is not available",
                error_code="method_unavailable",
                timestamp=datetime.utcnow(),
            )
            self.payments.record_payment(request, result)
            raise PaymentFailure(f"Payment method {request.payment_method.value} is not available")

        result = gateway_for(request.payment_method).charge(request)
        self.payments.record_payment(request, result)

        if result.status == PaymentResultStatus.COMPLETED:
            self.bookings.update_booking(
                booking.id,
                payment_status=PaymentStatus.PAID,
                payment_method=request.payment_method.value,
                payment_transaction_id=result.transaction_id,
            )
            logger.info(f"✅ Booking {booking.id} paid ({result.transaction_id})")
            if booking.partner_id:
                self.dispatcher.notify(
                    booking.partner_id,
                    NotificationTypes.PAYMENT_RECEIVED,
                    "Đã nhận thanh toán",
                    f"{booking.service_name} - {booking.formatted_date_time}",
                    category=NotificationCategory.PAYMENT,
                    priority=NotificationPriority.NORMAL,
                    data={"booking_id": booking.id, "amount": result.amount},
                )
        else:
            # Cash: paid to the partner in person
            self.bookings.update_booking(booking.id, payment_method=request.payment_method.value)
        return result


class RefundPayment(UseCase):
    def __init__(self, bookings: BookingRepository, payments: PaymentRepository):
        self.bookings = bookings
        self.payments = payments

    def execute(self, booking_id: str) -> PaymentResult:
        ensure(not is_blank(booking_id), "Booking ID cannot be empty")
        booking = self.bookings.get_booking(booking_id)
        if not booking.is_paid:
            raise PaymentFailure("Only paid bookings can be refunded")

        result = MockPaymentGateway().refund(
            booking.payment_transaction_id or "", booking.total_price, DEFAULT_CURRENCY
        )
        self.payments.record_payment(
            PaymentRequest(
                booking_id=booking.id,
                user_id=booking.user_id,
                amount=booking.total_price,
                payment_method=gateway_method(booking),
                description="Refund",
            ),
            result,
        )
        self.bookings.update_booking(booking.id, payment_status=PaymentStatus.REFUNDED)
        logger.info(f"↩️ Booking {booking.id} refunded")
        return result


def gateway_method(booking: Booking) -> PaymentMethodType:
    try:
        return PaymentMethodType(booking.payment_method)
    except ValueError:
        return PaymentMethodType.MOCK


class CanReviewBooking(UseCase):
    def __init__(self, bookings: BookingRepository, reviews: ReviewRepository):
        self.bookings = bookings
        self.reviews = reviews

    def execute(self, params: ReviewRequest) -> bool:
        booking = self.bookings.get_booking(params.booking_id)
        return (
            booking.user_id == params.user_id
            and booking.is_completed
            and self.reviews.get_booking_review(booking.id) is None
        )


def validate_review(request: ReviewRequest) -> None:
    ensure(not is_blank(request.booking_id), "Booking ID cannot be empty")
    ensure(not is_blank(request.user_id), "User ID cannot be empty")
    ensure(1 <= request.rating <= 5, "Rating must be between 1 and 5")
    if request.comment:
        length = len(request.comment.strip())
        ensure(
            MIN_COMMENT_LENGTH <= length <= MAX_COMMENT_LENGTH,
            f"Comment must be between {MIN_COMMENT_LENGTH} and {MAX_COMMENT_LENGTH} characters",
        )
    ensure(len(request.tags) <= MAX_REVIEW_TAGS, f"Cannot add more than {MAX_REVIEW_TAGS} tags")


class CreateReview(UseCase):
    """Store the review and refresh the partner's rating"""

    def __init__(
        self,
        bookings: BookingRepository,
        reviews: ReviewRepository,
        partners: PartnerRepository,
        dispatcher: NotificationDispatcher,
    ):
        self.bookings = bookings
        self.reviews = reviews
        self.partners = partners
        self.dispatcher = dispatcher
        self.can_review = CanReviewBooking(bookings, reviews)

    def execute(self, request: ReviewRequest) -> Review:
        validate_review(request)
        if not self.can_review(request).unwrap():
            raise ValidationFailure("User cannot review this booking")

        booking = self.bookings.get_booking(request.booking_id)
        if request.comment:
            request.comment = request.comment.strip()
        review = self.reviews.create_review(request, booking.partner_id, booking.service_id)

        rating, total = self.reviews.get_partner_rating(booking.partner_id)
        self.partners.update_partner(booking.partner_id, rating=rating, total_reviews=total)
        logger.info(f"⭐ Partner {booking.partner_id} rating now {rating} ({total} reviews)")

        self.dispatcher.notify(
            booking.partner_id,
            NotificationTypes.REVIEW_RECEIVED,
            "Bạn có đánh giá mới",
            f"{review.stars_display} - {booking.service_name}",
            category=NotificationCategory.SOCIAL,
            data={"booking_id": booking.id, "review_id": review.id, "rating": review.rating},
        )
        return review


@dataclass
class PartnerReviewsQuery:
    partner_id: str
    limit: int = 20


class GetPartnerReviews(UseCase):
    def __init__(self, reviews: ReviewRepository):
        self.reviews = reviews

    def execute(self, params: PartnerReviewsQuery) -> list[Review]:
        ensure(not is_blank(params.partner_id), "Partner ID cannot be empty")
        ensure(0 < params.limit <= MAX_REVIEW_LIMIT, f"Limit must be between 1 and {MAX_REVIEW_LIMIT}")
        return self.reviews.get_partner_reviews(params.partner_id, params.limit)


class GetBookingReview(UseCase):
    def __init__(self, reviews: ReviewRepository):
        self.reviews = reviews

    def execute(self, booking_id: str):
        ensure(not is_blank(booking_id), "Booking ID cannot be empty")
        return self.reviews.get_booking_review(booking_id)
