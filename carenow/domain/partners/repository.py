"""Partner and onboarding repositories"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Partner as PartnerModel
from ...models import PartnerOnboarding as OnboardingModel
from ...shared.failures import DataFailure, ValidationFailure
from ...shared.repository import SqlAlchemyRepository
from .entities import OnboardingStep, Partner, PartnerOnboarding

logger = logging.getLogger(__name__)


@dataclass
class PartnerSearchCriteria:
    query: Optional[str] = None
    services: Optional[list[str]] = None
    city: Optional[str] = None
    district: Optional[str] = None
    min_rating: Optional[float] = None
    max_price: Optional[float] = None
    is_verified: Optional[bool] = None
    is_available: Optional[bool] = None


class PartnerRepository(ABC):
    @abstractmethod
    def create_partner(self, partner: Partner) -> Partner: ...

    @abstractmethod
    def get_partner(self, uid: str) -> Partner: ...

    @abstractmethod
    def find_partner(self, uid: str) -> Optional[Partner]: ...

    @abstractmethod
    def get_partners_by_service(self, service_id: str) -> list[Partner]: ...

    @abstractmethod
    def get_bookable_partners(self, service_id: str) -> list[Partner]: ...

    @abstractmethod
    def search_partners(self, criteria: PartnerSearchCriteria) -> list[Partner]: ...

    @abstractmethod
    def update_partner(self, uid: str, **changes) -> Partner: ...

    @abstractmethod
    def list_partners(self) -> list[Partner]: ...


class OnboardingRepository(ABC):
    @abstractmethod
    def get_onboarding(self, uid: str) -> Optional[PartnerOnboarding]: ...

    @abstractmethod
    def save_onboarding(self, onboarding: PartnerOnboarding) -> PartnerOnboarding: ...


PARTNER_FIELDS = (
    "name",
    "phone",
    "email",
    "gender",
    "rating",
    "total_reviews",
    "latitude",
    "longitude",
    "address",
    "city",
    "district",
    "bio",
    "profile_image_url",
    "experience_years",
    "price_per_hour",
    "is_available",
    "is_verified",
    "is_online",
    "last_seen",
    "unavailability_reason",
    "unavailable_until",
    "fcm_token",
)

# JSON columns are always replaced, never mutated in place
JSON_FIELDS = ("services", "working_hours", "certifications", "blocked_dates")


def _to_entity(row: PartnerModel) -> Partner:
    return Partner(
        uid=row.uid,
        name=row.name,
        phone=row.phone,
        email=row.email,
        gender=row.gender,
        services=list(row.services or []),
        working_hours={k: list(v or []) for k, v in (row.working_hours or {}).items()},
        rating=row.rating or 0.0,
        total_reviews=row.total_reviews or 0,
        latitude=row.latitude,
        longitude=row.longitude,
        address=row.address,
        city=row.city,
        district=row.district,
        bio=row.bio,
        profile_image_url=row.profile_image_url,
        certifications=list(row.certifications or []),
        experience_years=row.experience_years or 0,
        price_per_hour=row.price_per_hour or 0.0,
        is_available=row.is_available,
        is_verified=row.is_verified,
        is_online=row.is_online,
        last_seen=row.last_seen,
        unavailability_reason=row.unavailability_reason,
        unavailable_until=row.unavailable_until,
        blocked_dates=list(row.blocked_dates or []),
        fcm_token=row.fcm_token,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyPartnerRepository(SqlAlchemyRepository, PartnerRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def _get_row(self, uid: str) -> PartnerModel:
        with self.guard("loading partner"):
            row = self.db.query(PartnerModel).filter(PartnerModel.uid == uid).first()
        if not row:
            raise DataFailure(f"Partner not found: {uid}")
        return row

    def create_partner(self, partner: Partner) -> Partner:
        with self.guard("creating partner"):
            if self.db.query(PartnerModel.uid).filter(PartnerModel.uid == partner.uid).first():
                raise ValidationFailure("Partner profile already exists")
            row = PartnerModel(uid=partner.uid)
            for name in PARTNER_FIELDS:
                setattr(row, name, getattr(partner, name))
            row.services = list(partner.services)
            row.working_hours = {k.lower(): list(v) for k, v in partner.working_hours.items()}
            row.certifications = list(partner.certifications)
            row.blocked_dates = list(partner.blocked_dates)
            self.db.add(row)
            self.commit(row)
        logger.info(f"✅ Partner profile created: {partner.uid}")
        return _to_entity(row)

    def get_partner(self, uid: str) -> Partner:
        return _to_entity(self._get_row(uid))

    def find_partner(self, uid: str) -> Optional[Partner]:
        with self.guard("loading partner"):
            row = self.db.query(PartnerModel).filter(PartnerModel.uid == uid).first()
        return _to_entity(row) if row else None

    def list_partners(self) -> list[Partner]:
        with self.guard("listing partners"):
            rows = self.db.query(PartnerModel).all()
        return [_to_entity(r) for r in rows]

    def get_partners_by_service(self, service_id: str) -> list[Partner]:
        # Service lists live in a JSON column; membership is checked in Python
        return [p for p in self.list_partners() if p.provides_service(service_id)]

    def get_bookable_partners(self, service_id: str) -> list[Partner]:
        with self.guard("listing bookable partners"):
            rows = (
                self.db.query(PartnerModel)
                .filter(PartnerModel.is_available.is_(True), PartnerModel.is_verified.is_(True))
                .all()
            )
        return [p for p in map(_to_entity, rows) if p.provides_service(service_id)]

    def search_partners(self, criteria: PartnerSearchCriteria) -> list[Partner]:
        query = self.db.query(PartnerModel)
        if criteria.query:
            pattern = f"%{criteria.query.strip()}%"
            query = query.filter(or_(PartnerModel.name.ilike(pattern), PartnerModel.bio.ilike(pattern)))
        if criteria.city:
            query = query.filter(PartnerModel.city.ilike(criteria.city.strip()))
        if criteria.district:
            query = query.filter(PartnerModel.district.ilike(criteria.district.strip()))
        if criteria.min_rating is not None:
            query = query.filter(PartnerModel.rating >= criteria.min_rating)
        if criteria.max_price is not None:
            query = query.filter(PartnerModel.price_per_hour <= criteria.max_price)
        if criteria.is_verified is not None:
            query = query.filter(PartnerModel.is_verified.is_(criteria.is_verified))
        if criteria.is_available is not None:
            query = query.filter(PartnerModel.is_available.is_(criteria.is_available))

        with self.guard("searching partners"):
            rows = query.order_by(PartnerModel.rating.desc()).all()
        partners = [_to_entity(r) for r in rows]
        if criteria.services:
            wanted = set(criteria.services)
            partners = [p for p in partners if wanted & set(p.services)]
        return partners

    def update_partner(self, uid: str, **changes) -> Partner:
        row = self._get_row(uid)
        with self.guard("updating partner"):
            for key, value in changes.items():
                if key in JSON_FIELDS and value is not None:
                    value = dict(value) if isinstance(value, dict) else list(value)
                setattr(row, key, value)
            row.updated_at = datetime.utcnow()
            self.commit(row)
        return _to_entity(row)


def _onboarding_to_entity(row: OnboardingModel) -> PartnerOnboarding:
    return PartnerOnboarding(
        uid=row.uid,
        current_step=OnboardingStep(row.current_step),
        # JSON object keys come back as strings
        completed_steps={int(k): bool(v) for k, v in (row.completed_steps or {}).items()},
        partial_profile=dict(row.partial_profile or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyOnboardingRepository(SqlAlchemyRepository, OnboardingRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def get_onboarding(self, uid: str) -> Optional[PartnerOnboarding]:
        with self.guard("loading onboarding"):
            row = self.db.query(OnboardingModel).filter(OnboardingModel.uid == uid).first()
        return _onboarding_to_entity(row) if row else None

    def save_onboarding(self, onboarding: PartnerOnboarding) -> PartnerOnboarding:
        with self.guard("saving onboarding"):
            row = self.db.query(OnboardingModel).filter(OnboardingModel.uid == onboarding.uid).first()
            if row is None:
                row = OnboardingModel(uid=onboarding.uid)
                self.db.add(row)
            row.current_step = int(onboarding.current_step)
            row.completed_steps = {str(k): v for k, v in onboarding.completed_steps.items()}
            row.partial_profile = dict(onboarding.partial_profile)
            row.updated_at = datetime.utcnow()
            self.commit(row)
        return _onboarding_to_entity(row)
