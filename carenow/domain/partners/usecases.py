"""Partner profile, discovery and availability use cases"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...config import DEFAULT_SEARCH_RADIUS_KM
from ...shared.failures import LocationFailure, ValidationFailure
from ...shared.usecase import UseCase
from ...shared.validators import (
    MIN_BOOKING_HOURS,
    SERVICE_ID_PATTERN,
    ensure,
    is_blank,
    is_valid_coordinates,
    is_valid_email,
    is_valid_time_slot,
    is_valid_vn_phone,
    parse_iso_date,
    validate_working_hours,
    weekday_name,
)
from ..bookings.repository import BookingRepository
from ..bookings.usecases import find_schedule_conflict
from ..profiles.entities import ROLE_PARTNER
from ..profiles.repository import ProfileRepository
from .entities import Partner, PartnerAvailability
from .repository import PartnerRepository, PartnerSearchCriteria

logger = logging.getLogger(__name__)

MAX_SERVICES = 10
MAX_PRICE_PER_HOUR = 1_000_000
MAX_SEARCH_PRICE = 10_000_000
MAX_EXPERIENCE_YEARS = 50
MAX_BIO_LENGTH = 500


def validate_services(services: Optional[list[str]]) -> None:
    ensure(bool(services), "At least one service is required")
    ensure(len(services) <= MAX_SERVICES, f"Cannot offer more than {MAX_SERVICES} services")
    for service_id in services:
        ensure(
            bool(service_id) and bool(SERVICE_ID_PATTERN.match(service_id)),
            f"Invalid service ID: {service_id}",
        )
    ensure(len(set(services)) == len(services), "Duplicate services are not allowed")


def validate_partner(partner: Partner) -> None:
    ensure(not is_blank(partner.uid), "User ID cannot be empty")
    ensure(not is_blank(partner.name), "Name cannot be empty")
    ensure(len(partner.name.strip()) >= 2, "Name must be at least 2 characters")
    ensure(not is_blank(partner.email), "Email cannot be empty")
    ensure(is_valid_email(partner.email), "Invalid email format")
    ensure(not is_blank(partner.phone), "Phone number cannot be empty")
    ensure(is_valid_vn_phone(partner.phone), "Invalid phone number format")
    ensure(
        0 <= partner.price_per_hour <= MAX_PRICE_PER_HOUR,
        f"Price per hour must be between 0 and {MAX_PRICE_PER_HOUR:,}",
    )
    ensure(
        0 <= partner.experience_years <= MAX_EXPERIENCE_YEARS,
        f"Experience must be between 0 and {MAX_EXPERIENCE_YEARS} years",
    )
    if partner.bio:
        ensure(len(partner.bio) <= MAX_BIO_LENGTH, f"Bio cannot exceed {MAX_BIO_LENGTH} characters")
    validate_services(partner.services)
    error = validate_working_hours(partner.working_hours)
    if error:
        raise ValidationFailure(error)
    if partner.latitude is not None or partner.longitude is not None:
        if not is_valid_coordinates(partner.latitude, partner.longitude):
            raise LocationFailure("Invalid coordinates")


class CreatePartnerProfile(UseCase):
    """Create the partner record and switch the account's role to partner"""

    def __init__(self, partners: PartnerRepository, profiles: ProfileRepository):
        self.partners = partners
        self.profiles = profiles

    def execute(self, partner: Partner) -> Partner:
        validate_partner(partner)
        profile = self.profiles.find_profile(partner.uid)
        if profile is not None and not partner.fcm_token:
            partner.fcm_token = profile.fcm_token
        created = self.partners.create_partner(partner)
        if profile is not None:
            self.profiles.set_role(partner.uid, ROLE_PARTNER)
        return created


class GetPartnerById(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, uid: str) -> Partner:
        ensure(not is_blank(uid), "Partner ID cannot be empty")
        return self.partners.get_partner(uid)


class GetPartnersByService(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, service_id: str) -> list[Partner]:
        ensure(not is_blank(service_id), "Service ID cannot be empty")
        return self.partners.get_partners_by_service(service_id)


@dataclass
class AvailablePartnersQuery:
    service_id: str
    date: date
    time_slot: str
    client_latitude: Optional[float] = None
    client_longitude: Optional[float] = None
    max_distance: float = DEFAULT_SEARCH_RADIUS_KM
    hours: float = MIN_BOOKING_HOURS


@dataclass
class PartnerMatch:
    partner: Partner
    distance_km: Optional[float] = None


class GetAvailablePartners(UseCase):
    """
    Verified, available partners offering the service whose working hours
    cover the requested slot and who have no confirmed booking overlapping
    it. With a client location the result is limited to ``max_distance`` and
    sorted nearest first; otherwise best rated first.
    """

    def __init__(self, partners: PartnerRepository, bookings: BookingRepository):
        self.partners = partners
        self.bookings = bookings

    def execute(self, query: AvailablePartnersQuery) -> list[PartnerMatch]:
        ensure(not is_blank(query.service_id), "Service ID cannot be empty")
        ensure(is_valid_time_slot(query.time_slot), "Invalid time slot format. Expected HH:MM")
        ensure(query.max_distance > 0, "Maximum distance must be greater than 0")
        ensure(query.hours > 0, "Hours must be greater than 0")

        has_location = query.client_latitude is not None or query.client_longitude is not None
        if has_location and not is_valid_coordinates(query.client_latitude, query.client_longitude):
            raise LocationFailure("Invalid client location")

        day = weekday_name(query.date)
        matches = []
        for partner in self.partners.get_bookable_partners(query.service_id):
            if partner.is_date_blocked(query.date):
                continue
            if not partner.is_available_at(day, query.time_slot):
                continue
            if find_schedule_conflict(self.bookings, partner.uid, query.date, query.time_slot, query.hours):
                continue
            if has_location:
                distance = partner.distance_from(query.client_latitude, query.client_longitude)
                if distance is None or distance > query.max_distance:
                    continue
                matches.append(PartnerMatch(partner, distance))
            else:
                matches.append(PartnerMatch(partner))

        if has_location:
            matches.sort(key=lambda m: m.distance_km)
        else:
            matches.sort(key=lambda m: m.partner.rating, reverse=True)
        return matches


class SearchPartners(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, criteria: PartnerSearchCriteria) -> list[Partner]:
        if criteria.query is not None:
            ensure(len(criteria.query.strip()) >= 2, "Search query must be at least 2 characters")
        if criteria.min_rating is not None:
            ensure(0 <= criteria.min_rating <= 5, "Rating must be between 0 and 5")
        if criteria.max_price is not None:
            ensure(
                0 <= criteria.max_price <= MAX_SEARCH_PRICE,
                f"Maximum price must be between 0 and {MAX_SEARCH_PRICE:,}",
            )
        if criteria.services is not None:
            ensure(len(criteria.services) > 0, "Services filter cannot be empty")
            ensure(
                len(criteria.services) <= MAX_SERVICES,
                f"Cannot filter by more than {MAX_SERVICES} services",
            )
            ensure(all(not is_blank(s) for s in criteria.services), "Service ID cannot be empty")
        if criteria.city is not None:
            ensure(not is_blank(criteria.city), "City cannot be empty")
        if criteria.district is not None:
            ensure(not is_blank(criteria.district), "District cannot be empty")
        return self.partners.search_partners(criteria)


@dataclass
class ServicesUpdate:
    uid: str
    services: list[str]


class UpdatePartnerServices(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, params: ServicesUpdate) -> Partner:
        ensure(not is_blank(params.uid), "Partner ID cannot be empty")
        validate_services(params.services)
        return self.partners.update_partner(params.uid, services=params.services)


@dataclass
class WorkingHoursUpdate:
    uid: str
    working_hours: dict[str, list[str]]


class UpdateWorkingHours(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, params: WorkingHoursUpdate) -> Partner:
        ensure(not is_blank(params.uid), "Partner ID cannot be empty")
        error = validate_working_hours(params.working_hours)
        if error:
            raise ValidationFailure(error)
        normalized = {day.lower(): list(windows or []) for day, windows in params.working_hours.items()}
        logger.info(f"📅 Working hours updated for partner {params.uid}")
        return self.partners.update_partner(params.uid, working_hours=normalized)


class GetPartnerAvailability(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, uid: str) -> PartnerAvailability:
        ensure(not is_blank(uid), "Partner ID cannot be empty")
        return PartnerAvailability.from_partner(self.partners.get_partner(uid))


@dataclass
class AvailabilityStatusUpdate:
    uid: str
    is_available: bool
    reason: Optional[str] = None
    unavailable_until: Optional[datetime] = None


class UpdateAvailabilityStatus(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, params: AvailabilityStatusUpdate) -> PartnerAvailability:
        ensure(not is_blank(params.uid), "Partner ID cannot be empty")
        if params.is_available:
            changes = {"is_available": True, "unavailability_reason": None, "unavailable_until": None}
        else:
            if params.unavailable_until is not None:
                ensure(
                    params.unavailable_until > datetime.utcnow(),
                    "Unavailable-until time must be in the future",
                )
            changes = {
                "is_available": False,
                "unavailability_reason": params.reason,
                "unavailable_until": params.unavailable_until,
            }
        partner = self.partners.update_partner(params.uid, **changes)
        return PartnerAvailability.from_partner(partner)


@dataclass
class OnlineStatusUpdate:
    uid: str
    is_online: bool


class UpdateOnlineStatus(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, params: OnlineStatusUpdate) -> PartnerAvailability:
        ensure(not is_blank(params.uid), "Partner ID cannot be empty")
        partner = self.partners.update_partner(
            params.uid, is_online=params.is_online, last_seen=datetime.utcnow()
        )
        return PartnerAvailability.from_partner(partner)


@dataclass
class BlockedDatesUpdate:
    uid: str
    dates: list[str]


def _parse_dates(values: list[str]) -> set[str]:
    ensure(bool(values), "At least one date is required")
    return {parse_iso_date(v).isoformat() for v in values}


class BlockDates(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, params: BlockedDatesUpdate) -> PartnerAvailability:
        ensure(not is_blank(params.uid), "Partner ID cannot be empty")
        dates = _parse_dates(params.dates)
        partner = self.partners.get_partner(params.uid)
        blocked = sorted(set(partner.blocked_dates) | dates)
        partner = self.partners.update_partner(params.uid, blocked_dates=blocked)
        return PartnerAvailability.from_partner(partner)


class UnblockDates(UseCase):
    def __init__(self, partners: PartnerRepository):
        self.partners = partners

    def execute(self, params: BlockedDatesUpdate) -> PartnerAvailability:
        ensure(not is_blank(params.uid), "Partner ID cannot be empty")
        dates = _parse_dates(params.dates)
        partner = self.partners.get_partner(params.uid)
        blocked = sorted(set(partner.blocked_dates) - dates)
        partner = self.partners.update_partner(params.uid, blocked_dates=blocked)
        return PartnerAvailability.from_partner(partner)
