from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

ROLE_CLIENT = "client"
ROLE_PARTNER = "partner"


@dataclass
class UserProfile:
    uid: str
    email: str
    display_name: str
    phone_number: Optional[str] = None
    avatar: Optional[str] = None
    role: str = ROLE_CLIENT
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    bio: Optional[str] = None
    preferences: list[str] = field(default_factory=list)
    is_email_verified: bool = False
    is_phone_verified: bool = False
    fcm_token: Optional[str] = None
    topics: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_partner(self) -> bool:
        return self.role == ROLE_PARTNER

    @property
    def is_client(self) -> bool:
        return self.role == ROLE_CLIENT

    @property
    def is_profile_complete(self) -> bool:
        return bool(self.display_name and self.phone_number and self.address)

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
