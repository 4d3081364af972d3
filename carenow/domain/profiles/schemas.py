"""Profile schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import normalize_phone


class ProfileUpdate(BaseModel):
    """Fields omitted from the request keep their current value"""

    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    bio: Optional[str] = None
    preferences: Optional[list[str]] = None

    @field_validator("phone_number")
    @classmethod
    def strip_phone(cls, v):
        if v:
            return normalize_phone(v)
        return v


class FcmTokenRequest(BaseModel):
    token: str


class ProfileResponse(BaseModel):
    uid: str
    email: str
    display_name: str
    phone_number: Optional[str] = None
    avatar: Optional[str] = None
    role: str
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    bio: Optional[str] = None
    preferences: list[str]
    is_email_verified: bool
    is_phone_verified: bool
    is_profile_complete: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AvatarResponse(BaseModel):
    avatar_url: str
