"""Partner endpoints: profile, availability, onboarding, jobs and earnings"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from ...auth import get_current_partner, get_current_user
from ...dependencies import (
    get_booking_repository,
    get_dispatcher,
    get_onboarding_repository,
    get_partner_repository,
    get_profile_repository,
)
from ...shared.validators import MIN_BOOKING_HOURS
from ..bookings.repository import BookingRepository
from ..bookings.usecases import (
    CompleteBooking,
    ConfirmBooking,
    PartnerBookingAction,
    RejectBooking,
    StartBooking,
)
from ..notifications.usecases import NotificationDispatcher
from ..profiles.entities import UserProfile
from ..profiles.repository import ProfileRepository
from .entities import JobStatus, OnboardingStep, Partner
from .jobs import (
    EarningsRangeQuery,
    GetEarningsByDateRange,
    GetPartnerEarnings,
    GetPartnerJobs,
    GetPendingJobs,
    JobAction,
    JobListQuery,
)
from .onboarding import (
    CompleteOnboarding,
    CompleteOnboardingStep,
    GetOnboarding,
    MoveToOnboardingStep,
    OnboardingProfileUpdate,
    OnboardingStepChange,
    StartOnboarding,
    UpdateOnboardingProfile,
)
from .repository import OnboardingRepository, PartnerRepository, PartnerSearchCriteria
from .schemas import (
    AvailabilityResponse,
    AvailabilityStatusRequest,
    BlockedDatesRequest,
    EarningsResponse,
    JobResponse,
    OnboardingProfileRequest,
    OnboardingResponse,
    OnlineStatusRequest,
    PartnerCreate,
    PartnerMatchResponse,
    PartnerResponse,
    RejectJobRequest,
    ServicesUpdateRequest,
    WorkingHoursRequest,
)
from .usecases import (
    AvailabilityStatusUpdate,
    AvailablePartnersQuery,
    BlockDates,
    BlockedDatesUpdate,
    CreatePartnerProfile,
    GetAvailablePartners,
    GetPartnerAvailability,
    GetPartnerById,
    GetPartnersByService,
    OnlineStatusUpdate,
    SearchPartners,
    ServicesUpdate,
    UnblockDates,
    UpdateAvailabilityStatus,
    UpdateOnlineStatus,
    UpdatePartnerServices,
    UpdateWorkingHours,
    WorkingHoursUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/partners", tags=["Partners"])


def _partner(partner: Partner) -> PartnerResponse:
    return PartnerResponse.model_validate(partner)


def _jobs(jobs) -> list[JobResponse]:
    return [JobResponse.model_validate(j) for j in jobs]


def get_create_partner(
    partners: PartnerRepository = Depends(get_partner_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> CreatePartnerProfile:
    return CreatePartnerProfile(partners, profiles)


# ============================================================================
# DISCOVERY
# ============================================================================


@router.post("", response_model=PartnerResponse, status_code=201)
async def create_partner(
    body: PartnerCreate,
    user: UserProfile = Depends(get_current_user),
    create_partner_profile: CreatePartnerProfile = Depends(get_create_partner),
):
    """Register the signed-in user as a partner"""
    partner = Partner(uid=user.uid, **body.model_dump())
    return _partner(create_partner_profile(partner).unwrap())


@router.get("/search", response_model=list[PartnerResponse])
async def search_partners(
    q: Optional[str] = Query(None),
    services: Optional[list[str]] = Query(None),
    city: Optional[str] = Query(None),
    district: Optional[str] = Query(None),
    min_rating: Optional[float] = Query(None),
    max_price: Optional[float] = Query(None),
    is_verified: Optional[bool] = Query(None),
    is_available: Optional[bool] = Query(None),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    criteria = PartnerSearchCriteria(
        query=q,
        services=services,
        city=city,
        district=district,
        min_rating=min_rating,
        max_price=max_price,
        is_verified=is_verified,
        is_available=is_available,
    )
    return [_partner(p) for p in SearchPartners(partners)(criteria).unwrap()]


@router.get("/available", response_model=list[PartnerMatchResponse])
async def available_partners(
    service_id: str = Query(...),
    day: date = Query(..., alias="date"),
    time_slot: str = Query(...),
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    max_distance: float = Query(50),
    hours: float = Query(MIN_BOOKING_HOURS),
    partners: PartnerRepository = Depends(get_partner_repository),
    bookings: BookingRepository = Depends(get_booking_repository),
):
    query = AvailablePartnersQuery(service_id, day, time_slot, lat, lng, max_distance, hours)
    matches = GetAvailablePartners(partners, bookings)(query).unwrap()
    return [PartnerMatchResponse.model_validate(m) for m in matches]


@router.get("/by-service/{service_id}", response_model=list[PartnerResponse])
async def partners_by_service(
    service_id: str, partners: PartnerRepository = Depends(get_partner_repository)
):
    return [_partner(p) for p in GetPartnersByService(partners)(service_id).unwrap()]


# ============================================================================
# ONBOARDING
# ============================================================================


@router.post("/onboarding/start", response_model=OnboardingResponse)
async def start_onboarding(
    user: UserProfile = Depends(get_current_user),
    repository: OnboardingRepository = Depends(get_onboarding_repository),
):
    return OnboardingResponse.model_validate(StartOnboarding(repository)(user.uid).unwrap())


@router.get("/onboarding", response_model=OnboardingResponse)
async def get_onboarding(
    user: UserProfile = Depends(get_current_user),
    repository: OnboardingRepository = Depends(get_onboarding_repository),
):
    return OnboardingResponse.model_validate(GetOnboarding(repository)(user.uid).unwrap())


@router.patch("/onboarding/profile", response_model=OnboardingResponse)
async def update_onboarding_profile(
    body: OnboardingProfileRequest,
    user: UserProfile = Depends(get_current_user),
    repository: OnboardingRepository = Depends(get_onboarding_repository),
):
    params = OnboardingProfileUpdate(user.uid, body.profile)
    return OnboardingResponse.model_validate(UpdateOnboardingProfile(repository)(params).unwrap())


@router.post("/onboarding/steps/{step}/complete", response_model=OnboardingResponse)
async def complete_onboarding_step(
    step: int = Path(..., ge=1, le=7),
    user: UserProfile = Depends(get_current_user),
    repository: OnboardingRepository = Depends(get_onboarding_repository),
):
    params = OnboardingStepChange(user.uid, OnboardingStep(step))
    return OnboardingResponse.model_validate(CompleteOnboardingStep(repository)(params).unwrap())


@router.post("/onboarding/steps/{step}/move", response_model=OnboardingResponse)
async def move_to_onboarding_step(
    step: int = Path(..., ge=1, le=7),
    user: UserProfile = Depends(get_current_user),
    repository: OnboardingRepository = Depends(get_onboarding_repository),
):
    params = OnboardingStepChange(user.uid, OnboardingStep(step))
    return OnboardingResponse.model_validate(MoveToOnboardingStep(repository)(params).unwrap())


@router.post("/onboarding/complete", response_model=PartnerResponse)
async def complete_onboarding(
    user: UserProfile = Depends(get_current_user),
    repository: OnboardingRepository = Depends(get_onboarding_repository),
    create_partner_profile: CreatePartnerProfile = Depends(get_create_partner),
):
    partner = CompleteOnboarding(repository, create_partner_profile)(user.uid).unwrap()
    return _partner(partner)


# ============================================================================
# SIGNED-IN PARTNER: SETTINGS AND AVAILABILITY
# ============================================================================


@router.get("/me", response_model=PartnerResponse)
async def get_my_partner_profile(
    user: UserProfile = Depends(get_current_partner),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    return _partner(GetPartnerById(partners)(user.uid).unwrap())


@router.put("/me/services", response_model=PartnerResponse)
async def update_services(
    body: ServicesUpdateRequest,
    user: UserProfile = Depends(get_current_partner),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    return _partner(UpdatePartnerServices(partners)(ServicesUpdate(user.uid, body.services)).unwrap())


@router.put("/me/working-hours", response_model=PartnerResponse)
async def update_working_hours(
    body: WorkingHoursRequest,
    user: UserProfile = Depends(get_current_partner),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    params = WorkingHoursUpdate(user.uid, body.working_hours)
    return _partner(UpdateWorkingHours(partners)(params).unwrap())


@router.get("/me/availability", response_model=AvailabilityResponse)
async def get_availability(
    user: UserProfile = Depends(get_current_partner),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    return AvailabilityResponse.model_validate(GetPartnerAvailability(partners)(user.uid).unwrap())


@router.put("/me/availability", response_model=AvailabilityResponse)
async def update_availability(
    body: AvailabilityStatusRequest,
    user: UserProfile = Depends(get_current_partner),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    params = AvailabilityStatusUpdate(user.uid, body.is_available, body.reason, body.unavailable_until)
    return AvailabilityResponse.model_validate(UpdateAvailabilityStatus(partners)(params).unwrap())


@router.put("/me/online", response_model=AvailabilityResponse)
async def update_online(
    body: OnlineStatusRequest,
    user: UserProfile = Depends(get_current_partner),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    params = OnlineStatusUpdate(user.uid, body.is_online)
    return AvailabilityResponse.model_validate(UpdateOnlineStatus(partners)(params).unwrap())


@router.post("/me/blocked-dates", response_model=AvailabilityResponse)
async def block_dates(
    body: BlockedDatesRequest,
    user: UserProfile = Depends(get_current_partner),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    params = BlockedDatesUpdate(user.uid, body.dates)
    return AvailabilityResponse.model_validate(BlockDates(partners)(params).unwrap())


@router.post("/me/blocked-dates/remove", response_model=AvailabilityResponse)
async def unblock_dates(
    body: BlockedDatesRequest,
    user: UserProfile = Depends(get_current_partner),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    params = BlockedDatesUpdate(user.uid, body.dates)
    return AvailabilityResponse.model_validate(UnblockDates(partners)(params).unwrap())


# ============================================================================
# JOBS AND EARNINGS
# ============================================================================


@router.get("/me/jobs/pending", response_model=list[JobResponse])
async def pending_jobs(
    user: UserProfile = Depends(get_current_partner),
    bookings: BookingRepository = Depends(get_booking_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    return _jobs(GetPendingJobs(bookings, partners, profiles)(user.uid).unwrap())


@router.get("/me/jobs", response_model=list[JobResponse])
async def my_jobs(
    status: Optional[JobStatus] = Query(None),
    limit: int = Query(20),
    user: UserProfile = Depends(get_current_partner),
    bookings: BookingRepository = Depends(get_booking_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    query = JobListQuery(user.uid, status, limit)
    return _jobs(GetPartnerJobs(bookings, partners, profiles)(query).unwrap())


TRANSITIONS = {
    "accept": ConfirmBooking,
    "reject": RejectBooking,
    "start": StartBooking,
    "complete": CompleteBooking,
}


@router.post("/me/jobs/{booking_id}/{action}", response_model=JobResponse)
async def job_action(
    booking_id: str,
    action: str = Path(..., pattern="^(accept|reject|start|complete)$"),
    body: Optional[RejectJobRequest] = None,
    user: UserProfile = Depends(get_current_partner),
    bookings: BookingRepository = Depends(get_booking_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Accept, reject, start or complete a job"""
    transition = TRANSITIONS[action](bookings, partners, dispatcher)
    params = PartnerBookingAction(booking_id, user.uid, body.reason if body else None)
    job = JobAction(transition, partners, profiles)(params).unwrap()
    logger.info(f"✅ Partner {user.uid} {action} job {booking_id}")
    return JobResponse.model_validate(job)


@router.get("/me/earnings", response_model=EarningsResponse)
async def my_earnings(
    user: UserProfile = Depends(get_current_partner),
    bookings: BookingRepository = Depends(get_booking_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    return EarningsResponse.model_validate(GetPartnerEarnings(bookings, partners)(user.uid).unwrap())


@router.get("/me/earnings/range", response_model=EarningsResponse)
async def earnings_by_range(
    start: date = Query(...),
    end: date = Query(...),
    user: UserProfile = Depends(get_current_partner),
    bookings: BookingRepository = Depends(get_booking_repository),
    partners: PartnerRepository = Depends(get_partner_repository),
):
    query = EarningsRangeQuery(user.uid, start, end)
    return EarningsResponse.model_validate(GetEarningsByDateRange(bookings, partners)(query).unwrap())


@router.get("/{uid}", response_model=PartnerResponse)
async def get_partner(uid: str, partners: PartnerRepository = Depends(get_partner_repository)):
    return _partner(GetPartnerById(partners)(uid).unwrap())
