import logging
from dataclasses import dataclass

from ...services.storage import ObjectStorage, build_avatar_key
from ...shared.usecase import UseCase
from ...shared.validators import (
    age_on,
    ensure,
    has_allowed_avatar_extension,
    is_blank,
    is_valid_coordinates,
    is_valid_email,
    is_valid_vn_phone,
)
from .entities import UserProfile
from .repository import ProfileRepository

logger = logging.getLogger(__name__)

MIN_AGE = 16
MAX_AGE = 100
MAX_AVATAR_BYTES = 5 * 1024 * 1024


def validate_profile(profile: UserProfile) -> None:
    ensure(not is_blank(profile.uid), "User ID cannot be empty")
    ensure(not is_blank(profile.email), "Email cannot be empty")
    ensure(is_valid_email(profile.email), "Invalid email format")
    ensure(not is_blank(profile.display_name), "Display name cannot be empty")
    ensure(len(profile.display_name.strip()) >= 2, "Display name must be at least 2 characters")
    if profile.phone_number:
        ensure(is_valid_vn_phone(profile.phone_number), "Invalid phone number format")
    if profile.latitude is not None or profile.longitude is not None:
        ensure(
            is_valid_coordinates(profile.latitude, profile.longitude),
            "Invalid coordinates",
        )


class CreateUserProfile(UseCase):
    def __init__(self, repository: ProfileRepository):
        self.repository = repository

    def execute(self, profile: UserProfile) -> UserProfile:
        validate_profile(profile)
        return self.repository.create_profile(profile)


class GetUserProfile(UseCase):
    def __init__(self, repository: ProfileRepository):
        self.repository = repository

    def execute(self, uid: str) -> UserProfile:
        ensure(not is_blank(uid), "User ID cannot be empty")
        return self.repository.get_profile(uid)


class UpdateUserProfile(UseCase):
    def __init__(self, repository: ProfileRepository):
        self.repository = repository

    def execute(self, profile: UserProfile) -> UserProfile:
        validate_profile(profile)
        if profile.date_of_birth:
            age = age_on(profile.date_of_birth)
            ensure(MIN_AGE <= age <= MAX_AGE, f"Age must be between {MIN_AGE} and {MAX_AGE}")
        updated = self.repository.update_profile(profile)
        logger.info(f"✅ Profile updated for {profile.uid}")
        return updated


@dataclass
class AvatarUpload:
    uid: str
    filename: str
    content: bytes


class UpdateProfileAvatar(UseCase):
    """Upload a new avatar image and return its public URL"""

    def __init__(self, repository: ProfileRepository, storage: ObjectStorage):
        self.repository = repository
        self.storage = storage

    def execute(self, params: AvatarUpload) -> str:
        ensure(not is_blank(params.uid), "User ID cannot be empty")
        ensure(not is_blank(params.filename), "Image file is required")
        ensure(
            has_allowed_avatar_extension(params.filename),
            "Only JPG, PNG and WEBP images are allowed",
        )
        ensure(len(params.content) > 0, "Image file is empty")
        ensure(len(params.content) <= MAX_AVATAR_BYTES, "Image must be smaller than 5MB")

        # Fail before uploading if the profile doesn't exist
        self.repository.get_profile(params.uid)
        url = self.storage.upload(
            build_avatar_key(params.uid, params.filename), params.content, params.filename
        )
        self.repository.update_avatar(params.uid, url)
        return url


@dataclass
class FcmTokenUpdate:
    uid: str
    token: str


class UpdateFcmToken(UseCase):
    def __init__(self, repository: ProfileRepository):
        self.repository = repository

    def execute(self, params: FcmTokenUpdate) -> None:
        ensure(not is_blank(params.uid), "User ID cannot be empty")
        ensure(not is_blank(params.token), "Push token cannot be empty")
        self.repository.update_fcm_token(params.uid, params.token.strip())
