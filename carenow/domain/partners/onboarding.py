"""Partner onboarding checklist use cases"""

import logging
from dataclasses import dataclass
from datetime import datetime

from ...shared.failures import DataFailure, ValidationFailure
from ...shared.usecase import UseCase
from ...shared.validators import ensure, is_blank
from .entities import OnboardingStep, Partner, PartnerOnboarding
from .repository import OnboardingRepository
from .usecases import CreatePartnerProfile

logger = logging.getLogger(__name__)

# Steps the partner fills in before the profile can be created
REQUIRED_STEPS = [
    OnboardingStep.PERSONAL_INFO,
    OnboardingStep.SERVICES,
    OnboardingStep.WORKING_HOURS,
    OnboardingStep.LOCATION,
    OnboardingStep.PRICING,
]

PROFILE_KEYS = {
    "name",
    "email",
    "phone",
    "gender",
    "services",
    "working_hours",
    "latitude",
    "longitude",
    "address",
    "city",
    "district",
    "bio",
    "price_per_hour",
    "experience_years",
    "certifications",
    "profile_image_url",
}


def _load(repository: OnboardingRepository, uid: str) -> PartnerOnboarding:
    ensure(not is_blank(uid), "User ID cannot be empty")
    onboarding = repository.get_onboarding(uid)
    if onboarding is None:
        raise DataFailure("Onboarding has not been started")
    return onboarding


def partner_from_profile(uid: str, profile: dict) -> Partner:
    return Partner(
        uid=uid,
        name=(profile.get("name") or "").strip(),
        email=(profile.get("email") or "").strip(),
        phone=(profile.get("phone") or "").strip(),
        gender=profile.get("gender"),
        services=list(profile.get("services") or []),
        working_hours=dict(profile.get("working_hours") or {}),
        latitude=profile.get("latitude"),
        longitude=profile.get("longitude"),
        address=profile.get("address"),
        city=profile.get("city"),
        district=profile.get("district"),
        bio=profile.get("bio"),
        price_per_hour=float(profile.get("price_per_hour") or 0),
        experience_years=int(profile.get("experience_years") or 0),
        certifications=list(profile.get("certifications") or []),
        profile_image_url=profile.get("profile_image_url"),
    )


class StartOnboarding(UseCase):
    """Create (or restart) the onboarding checklist"""

    def __init__(self, repository: OnboardingRepository):
        self.repository = repository

    def execute(self, uid: str) -> PartnerOnboarding:
        ensure(not is_blank(uid), "User ID cannot be empty")
        onboarding = PartnerOnboarding(uid=uid, created_at=datetime.utcnow())
        logger.info(f"🚀 Onboarding started for {uid}")
        return self.repository.save_onboarding(onboarding)


class GetOnboarding(UseCase):
    def __init__(self, repository: OnboardingRepository):
        self.repository = repository

    def execute(self, uid: str) -> PartnerOnboarding:
        return _load(self.repository, uid)


@dataclass
class OnboardingProfileUpdate:
    uid: str
    profile: dict


class UpdateOnboardingProfile(UseCase):
    def __init__(self, repository: OnboardingRepository):
        self.repository = repository

    def execute(self, params: OnboardingProfileUpdate) -> PartnerOnboarding:
        onboarding = _load(self.repository, params.uid)
        unknown = set(params.profile) - PROFILE_KEYS
        ensure(not unknown, f"Unknown profile fields: {', '.join(sorted(unknown))}")
        onboarding.partial_profile = {**onboarding.partial_profile, **params.profile}
        return self.repository.save_onboarding(onboarding)


@dataclass
class OnboardingStepChange:
    uid: str
    step: OnboardingStep


class CompleteOnboardingStep(UseCase):
    def __init__(self, repository: OnboardingRepository):
        self.repository = repository

    def execute(self, params: OnboardingStepChange) -> PartnerOnboarding:
        onboarding = _load(self.repository, params.uid)
        ensure(params.step != OnboardingStep.COMPLETED, "Use complete onboarding to finish")
        if params.step > onboarding.current_step:
            raise ValidationFailure("Please complete the previous steps first")
        if params.step == onboarding.current_step and not onboarding.can_move_to_next_step():
            raise ValidationFailure(onboarding.validation_message() or "Step is not complete")
        onboarding.complete_step(params.step)
        return self.repository.save_onboarding(onboarding)


class MoveToOnboardingStep(UseCase):
    """Going back is always allowed; going forward needs every earlier step done"""

    def __init__(self, repository: OnboardingRepository):
        self.repository = repository

    def execute(self, params: OnboardingStepChange) -> PartnerOnboarding:
        onboarding = _load(self.repository, params.uid)
        if params.step > onboarding.current_step:
            missing = [
                s for s in OnboardingStep if s < params.step and not onboarding.is_step_completed(s)
            ]
            if missing:
                raise ValidationFailure(f"Please complete '{missing[0].title}' first")
        onboarding.current_step = params.step
        return self.repository.save_onboarding(onboarding)


class CompleteOnboarding(UseCase):
    """Create the partner profile from the collected data and close the checklist"""

    def __init__(self, repository: OnboardingRepository, create_partner: CreatePartnerProfile):
        self.repository = repository
        self.create_partner = create_partner

    def execute(self, uid: str) -> Partner:
        onboarding = _load(self.repository, uid)
        missing = [s for s in REQUIRED_STEPS if not onboarding.is_step_completed(s)]
        if missing:
            raise ValidationFailure(f"Please complete '{missing[0].title}' first")

        partner = self.create_partner(partner_from_profile(uid, onboarding.partial_profile)).unwrap()

        onboarding.complete_step(OnboardingStep.VERIFICATION)
        onboarding.current_step = OnboardingStep.COMPLETED
        self.repository.save_onboarding(onboarding)
        logger.info(f"🎉 Onboarding completed for partner {uid}")
        return partner
