"""User profile repository - contract and SQLAlchemy implementation"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import User
from ...shared.failures import DataFailure, ValidationFailure
from ...shared.repository import SqlAlchemyRepository
from .entities import UserProfile

logger = logging.getLogger(__name__)

# Columns written from the entity on create/update
PROFILE_FIELDS = (
    "email",
    "display_name",
    "phone_number",
    "avatar",
    "role",
    "gender",
    "date_of_birth",
    "address",
    "city",
    "district",
    "latitude",
    "longitude",
    "bio",
    "is_email_verified",
    "is_phone_verified",
)


class ProfileRepository(ABC):
    @abstractmethod
    def create_profile(self, profile: UserProfile) -> UserProfile: ...

    @abstractmethod
    def get_profile(self, uid: str) -> UserProfile: ...

    @abstractmethod
    def find_profile(self, uid: str) -> Optional[UserProfile]: ...

    @abstractmethod
    def update_profile(self, profile: UserProfile) -> UserProfile: ...

    @abstractmethod
    def update_avatar(self, uid: str, avatar_url: str) -> UserProfile: ...

    @abstractmethod
    def update_fcm_token(self, uid: str, token: str) -> None: ...

    @abstractmethod
    def set_role(self, uid: str, role: str) -> None: ...

    @abstractmethod
    def set_topics(self, uid: str, topics: list[str]) -> None: ...

    @abstractmethod
    def delete_profile(self, uid: str) -> None: ...


def _to_entity(row: User) -> UserProfile:
    return UserProfile(
        uid=row.uid,
        email=row.email,
        display_name=row.display_name,
        phone_number=row.phone_number,
        avatar=row.avatar,
        role=row.role,
        gender=row.gender,
        date_of_birth=row.date_of_birth,
        address=row.address,
        city=row.city,
        district=row.district,
        latitude=row.latitude,
        longitude=row.longitude,
        bio=row.bio,
        preferences=list(row.preferences or []),
        is_email_verified=row.is_email_verified,
        is_phone_verified=row.is_phone_verified,
        fcm_token=row.fcm_token,
        topics=list(row.topics or []),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyProfileRepository(SqlAlchemyRepository, ProfileRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def _get_row(self, uid: str) -> User:
        with self.guard("loading profile"):
            row = self.db.query(User).filter(User.uid == uid).first()
        if not row:
            raise DataFailure(f"User profile not found: {uid}")
        return row

    def create_profile(self, profile: UserProfile) -> UserProfile:
        with self.guard("creating profile"):
            if self.db.query(User.uid).filter(User.uid == profile.uid).first():
                raise ValidationFailure("User profile already exists")
            row = User(uid=profile.uid, preferences=list(profile.preferences), topics=[])
            for name in PROFILE_FIELDS:
                setattr(row, name, getattr(profile, name))
            row.fcm_token = profile.fcm_token
            self.db.add(row)
            self.commit(row)
        logger.info(f"✅ Created profile for {profile.uid}")
        return _to_entity(row)

    def get_profile(self, uid: str) -> UserProfile:
        return _to_entity(self._get_row(uid))

    def find_profile(self, uid: str) -> Optional[UserProfile]:
        with self.guard("loading profile"):
            row = self.db.query(User).filter(User.uid == uid).first()
        return _to_entity(row) if row else None

    def update_profile(self, profile: UserProfile) -> UserProfile:
        row = self._get_row(profile.uid)
        with self.guard("updating profile"):
            for name in PROFILE_FIELDS:
                setattr(row, name, getattr(profile, name))
            row.preferences = list(profile.preferences)
            row.updated_at = datetime.utcnow()
            self.commit(row)
        return _to_entity(row)

    def update_avatar(self, uid: str, avatar_url: str) -> UserProfile:
        row = self._get_row(uid)
        with self.guard("updating avatar"):
            row.avatar = avatar_url
            self.commit(row)
        return _to_entity(row)

    def update_fcm_token(self, uid: str, token: str) -> None:
        row = self._get_row(uid)
        with self.guard("updating push token"):
            row.fcm_token = token
            self.db.commit()

    def set_role(self, uid: str, role: str) -> None:
        row = self._get_row(uid)
        with self.guard("updating role"):
            row.role = role
            self.db.commit()

    def set_topics(self, uid: str, topics: list[str]) -> None:
        row = self._get_row(uid)
        with self.guard("updating topics"):
            row.topics = list(topics)
            self.db.commit()

    def delete_profile(self, uid: str) -> None:
        with self.guard("deleting profile"):
            self.db.query(User).filter(User.uid == uid).delete()
            self.db.commit()
