"""Auth request and response schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SignInRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    email: str
    password: str
    confirm_password: str
    display_name: str


class PhoneSignInRequest(BaseModel):
    phone_number: str
    recaptcha_token: Optional[str] = None


class PhoneVerifyRequest(BaseModel):
    verification_id: str
    sms_code: str


class EmailRequest(BaseModel):
    email: str


class EmailVerificationRequest(BaseModel):
    id_token: str


class AuthProfileUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class PasswordUpdateRequest(BaseModel):
    new_password: str


class AuthUserResponse(BaseModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    is_email_verified: bool
    is_phone_verified: bool
    has_verified_contact: bool
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuthSessionResponse(BaseModel):
    user: AuthUserResponse
    id_token: str
    refresh_token: str
    expires_in: int

    class Config:
        from_attributes = True


class PhoneVerificationResponse(BaseModel):
    verification_id: str
    phone_number: str

    class Config:
        from_attributes = True


class EmailInUseResponse(BaseModel):
    email: str
    in_use: bool


class MessageResponse(BaseModel):
    message: str
