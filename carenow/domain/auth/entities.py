from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AuthUser:
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    is_email_verified: bool = False
    is_phone_verified: bool = False
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None

    @property
    def has_verified_contact(self) -> bool:
        return self.is_email_verified or self.is_phone_verified


@dataclass
class AuthSession:
    user: AuthUser
    id_token: str
    refresh_token: str
    expires_in: int


@dataclass
class PhoneVerification:
    verification_id: str
    phone_number: str
