"""Partner-side view of bookings: job queue, job actions and earnings"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

from ...config import PLATFORM_FEE_RATE
from ...shared.clock import local_now, to_local
from ...shared.usecase import UseCase
from ...shared.validators import ensure, is_blank
from ..bookings.entities import Booking, BookingStatus
from ..bookings.repository import BookingRepository
from ..bookings.usecases import PartnerBookingAction
from ..profiles.repository import ProfileRepository
from .entities import DailyEarning, Job, JobStatus, Partner, PartnerEarnings
from .repository import PartnerRepository

logger = logging.getLogger(__name__)

BREAKDOWN_DAYS = 14
MAX_EARNINGS_RANGE_DAYS = 365
MAX_JOB_LIMIT = 100


def partner_share(total_price: float) -> float:
    return total_price * (1 - PLATFORM_FEE_RATE)


class _JobMapper:
    def __init__(self, profiles: ProfileRepository):
        self.profiles = profiles
        self._names: dict[str, tuple[Optional[str], Optional[str]]] = {}

    def __call__(self, booking: Booking, partner: Optional[Partner]) -> Job:
        if booking.user_id not in self._names:
            profile = self.profiles.find_profile(booking.user_id)
            self._names[booking.user_id] = (
                (profile.display_name, profile.phone_number) if profile else (None, None)
            )
        name, phone = self._names[booking.user_id]
        return Job.from_booking(booking, partner, client_name=name, client_phone=phone)


class GetPendingJobs(UseCase):
    """Pending bookings addressed to the partner plus open ones for their services"""

    def __init__(
        self,
        bookings: BookingRepository,
        partners: PartnerRepository,
        profiles: ProfileRepository,
    ):
        self.bookings = bookings
        self.partners = partners
        self.to_job = _JobMapper(profiles)

    def execute(self, uid: str) -> list[Job]:
        ensure(not is_blank(uid), "Partner ID cannot be empty")
        partner = self.partners.get_partner(uid)
        assigned = self.bookings.get_partner_bookings(uid, BookingStatus.PENDING, MAX_JOB_LIMIT)
        open_bookings = self.bookings.get_open_bookings(partner.services)

        jobs = [self.to_job(b, partner) for b in assigned + open_bookings]
        jobs.sort(key=lambda j: j.start_at)
        return jobs


@dataclass
class JobListQuery:
    uid: str
    status: Optional[JobStatus] = None
    limit: int = 20


class GetPartnerJobs(UseCase):
    def __init__(
        self,
        bookings: BookingRepository,
        partners: PartnerRepository,
        profiles: ProfileRepository,
    ):
        self.bookings = bookings
        self.partners = partners
        self.to_job = _JobMapper(profiles)

    def execute(self, params: JobListQuery) -> list[Job]:
        ensure(not is_blank(params.uid), "Partner ID cannot be empty")
        ensure(0 < params.limit <= MAX_JOB_LIMIT, f"Limit must be between 1 and {MAX_JOB_LIMIT}")
        partner = self.partners.get_partner(params.uid)
        status = params.status.to_booking_status() if params.status else None
        bookings = self.bookings.get_partner_bookings(params.uid, status, params.limit)
        return [self.to_job(b, partner) for b in bookings]


class JobAction(UseCase):
    """
    Runs one booking transition on the partner's behalf and returns the
    resulting job. ``transition`` is ConfirmBooking, RejectBooking, etc.
    """

    def __init__(
        self,
        transition: Callable,
        partners: PartnerRepository,
        profiles: ProfileRepository,
    ):
        self.transition = transition
        self.partners = partners
        self.to_job = _JobMapper(profiles)

    def execute(self, params: PartnerBookingAction) -> Job:
        ensure(not is_blank(params.booking_id), "Booking ID cannot be empty")
        partner = self.partners.get_partner(params.partner_id)
        booking = self.transition(params).unwrap()
        return self.to_job(booking, partner)


def _earning_date(booking: Booking) -> date:
    if booking.completed_at:
        return to_local(booking.completed_at).date()
    return booking.scheduled_date


def _breakdown(bookings: list[Booking], start: date, end: date) -> list[DailyEarning]:
    per_day: dict[date, list[float]] = defaultdict(list)
    for booking in bookings:
        per_day[_earning_date(booking)].append(partner_share(booking.total_price))
    days = []
    for offset in range((end - start).days + 1):
        current = end - timedelta(days=offset)
        values = per_day.get(current, [])
        days.append(DailyEarning(date=current, earnings=sum(values), jobs=len(values)))
    return days


class GetPartnerEarnings(UseCase):
    def __init__(self, bookings: BookingRepository, partners: PartnerRepository):
        self.bookings = bookings
        self.partners = partners

    def execute(self, uid: str) -> PartnerEarnings:
        ensure(not is_blank(uid), "Partner ID cannot be empty")
        partner = self.partners.get_partner(uid)
        completed = self.bookings.get_completed_partner_bookings(uid)
        today = local_now().date()
        week_start = today - timedelta(days=6)

        earnings = PartnerEarnings(
            partner_id=uid,
            average_rating=partner.rating,
            total_reviews=partner.total_reviews,
        )
        for booking in completed:
            amount = partner_share(booking.total_price)
            day = _earning_date(booking)
            earnings.total_earnings += amount
            earnings.total_jobs += 1
            if day == today:
                earnings.today_earnings += amount
                earnings.today_jobs += 1
            if week_start <= day <= today:
                earnings.week_earnings += amount
                earnings.week_jobs += 1
            if (day.year, day.month) == (today.year, today.month):
                earnings.month_earnings += amount
                earnings.month_jobs += 1

        earnings.daily_breakdown = _breakdown(
            completed, today - timedelta(days=BREAKDOWN_DAYS - 1), today
        )
        return earnings


@dataclass
class EarningsRangeQuery:
    uid: str
    start: date
    end: date


class GetEarningsByDateRange(UseCase):
    """Earnings for completed jobs in [start, end], one breakdown entry per day"""

    def __init__(self, bookings: BookingRepository, partners: PartnerRepository):
        self.bookings = bookings
        self.partners = partners

    def execute(self, params: EarningsRangeQuery) -> PartnerEarnings:
        ensure(not is_blank(params.uid), "Partner ID cannot be empty")
        ensure(params.start <= params.end, "Start date must be before end date")
        ensure(
            (params.end - params.start).days <= MAX_EARNINGS_RANGE_DAYS,
            f"Date range cannot exceed {MAX_EARNINGS_RANGE_DAYS} days",
        )
        partner = self.partners.get_partner(params.uid)
        completed = [
            b
            for b in self.bookings.get_completed_partner_bookings(params.uid)
            if params.start <= _earning_date(b) <= params.end
        ]
        total = sum(partner_share(b.total_price) for b in completed)
        return PartnerEarnings(
            partner_id=params.uid,
            total_earnings=total,
            total_jobs=len(completed),
            average_rating=partner.rating,
            total_reviews=partner.total_reviews,
            daily_breakdown=_breakdown(completed, params.start, params.end),
        )
