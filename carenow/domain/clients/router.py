"""Client endpoints: bookings, partner search, payments and reviews"""

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
    get_payment_repository,
    get_review_repository,
)
from ...shared.failures import forbidden
from ...shared.validators import MIN_BOOKING_HOURS
from ..admin.entities import ActivityType, AdminPermission, AdminUser
from ..admin.repository import AdminRepository
from ..admin.usecases import require_permission
from ..bookings.entities import BookingStatus
from ..bookings.repository import BookingRepository
from ..bookings.schemas import BookingResponse
from ..bookings.usecases import BookingListQuery
from ..notifications.usecases import NotificationDispatcher
from ..partners.repository import PartnerRepository
from ..partners.schemas import PartnerMatchResponse
from ..partners.usecases import AvailablePartnersQuery
from ..profiles.entities import UserProfile
from .entities import PaymentRequest, ReviewRequest
from .repository import PaymentRepository, ReviewRepository
from .schemas import (
    CanReviewResponse,
    PaymentCreate,
    PaymentMethodResponse,
    PaymentRecordResponse,
    PaymentResultResponse,
    ReviewCreate,
    ReviewResponse,
)
from .usecases import (
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

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/client", tags=["Client"])


@router.get("/bookings", response_model=list[BookingResponse])
async def client_bookings(
    status: Optional[str] = Query(None),
    limit: int = Query(20),
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    query = BookingListQuery(user.uid, BookingStatus.parse(status) if status else None, limit)
    return [BookingResponse.model_validate(b) for b in GetClientBookings(bookings)(query).unwrap()]


@router.get("/partners/available", response_model=list[PartnerMatchResponse])
async def search_available_partners(
    service_id: str = Query(...),
    day: date = Query(..., alias="date"),
    time_slot: str = Query(...),
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    max_distance: float = Query(50),
    hours: float = Query(MIN_BOOKING_HOURS),
    user: UserProfile = Depends(get_current_user),
    partners: PartnerRepository = Depends(get_partner_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    query = AvailablePartnersQuery(service_id, day, time_slot, lat, lng, max_distance, hours)
    matches = SearchAvailablePartners(partners, bookings)(query).unwrap()
    return [PartnerMatchResponse.model_validate(m) for m in matches]


# ============================================================================
# PAYMENTS
# ============================================================================


@router.get("/payment-methods", response_model=list[PaymentMethodResponse])
async def payment_methods():
    return [PaymentMethodResponse.model_validate(m) for m in GetAvailablePaymentMethods()().unwrap()]


@router.post("/payments", response_model=PaymentResultResponse)
async def process_payment(
    body: PaymentCreate,
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
    payments: PaymentRepository = Depends(get_payment_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    request = PaymentRequest(user_id=user.uid, **body.model_dump())
    result = ProcessPayment(bookings, payments, dispatcher)(request).unwrap()
    return PaymentResultResponse.model_validate(result)


@router.get("/payments/{booking_id}", response_model=list[PaymentRecordResponse])
async def booking_payments(
    booking_id: str,
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
    payments: PaymentRepository = Depends(get_payment_repository),
):
    """Payment attempts recorded for one of the caller's bookings"""
    booking = bookings.get_booking(booking_id)
    if not booking.involves(user.uid):
        raise forbidden("You do not have access to this booking")
    return [PaymentRecordResponse.model_validate(p) for p in payments.get_booking_payments(booking_id)]


@router.post("/payments/{booking_id}/refund", response_model=PaymentResultResponse)
async def refund_payment(
    booking_id: str,
    admin: AdminUser = Depends(get_current_admin),
    bookings: BookingRepository = Depends(get_booking_repository),
    payments: PaymentRepository = Depends(get_payment_repository),
    admins: AdminRepository = Depends(get_admin_repository),
):
    require_permission(admin, AdminPermission.MANAGE_BOOKINGS)
    result = RefundPayment(bookings, payments)(booking_id).unwrap()
    admins.log_activity(
        admin.uid, ActivityType.REFUND_PAYMENT, f"Refunded booking {booking_id}", {"booking_id": booking_id}
    )
    return PaymentResultResponse.model_validate(result)


# ============================================================================
# REVIEWS
# ============================================================================


@router.get("/reviews/can-review/{booking_id}", response_model=CanReviewResponse)
async def can_review(
    booking_id: str,
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
    reviews: ReviewRepository = Depends(get_review_repository),
):
    params = ReviewRequest(booking_id=booking_id, user_id=user.uid, rating=5)
    allowed = CanReviewBooking(bookings, reviews)(params).unwrap()
    return CanReviewResponse(booking_id=booking_id, can_review=allowed)


@router.post("/reviews", response_model=ReviewResponse, status_code=201)
async def create_review(
    body: ReviewCreate,
    user: UserProfile = Depends(get_current_user),
    bookings: BookingRepository = Depends(get_booking_repository),
    reviews: ReviewRepository = Depends(get_review_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    request = ReviewRequest(user_id=user.uid, **body.model_dump())
    review = CreateReview(bookings, reviews, partners, dispatcher)(request).unwrap()
    return ReviewResponse.model_validate(review)


@router.get("/reviews/partner/{partner_id}", response_model=list[ReviewResponse])
async def partner_reviews(
    partner_id: str,
    limit: int = Query(20),
    reviews: ReviewRepository = Depends(get_review_repository),
):
    found = GetPartnerReviews(reviews)(PartnerReviewsQuery(partner_id, limit)).unwrap()
    return [ReviewResponse.model_validate(r) for r in found]


@router.get("/reviews/booking/{booking_id}", response_model=Optional[ReviewResponse])
async def booking_review(booking_id: str, reviews: ReviewRepository = Depends(get_review_repository)):
    review = GetBookingReview(reviews)(booking_id).unwrap()
    return ReviewResponse.model_validate(review) if review else None
