import logging
import re
from dataclasses import dataclass
from typing import Optional

from ...shared.failures import ValidationFailure
from ...shared.usecase import AsyncUseCase
from ...shared.validators import ensure, is_blank, is_valid_email, is_valid_vn_phone, to_e164_vn
from ..profiles.entities import UserProfile
from ..profiles.repository import ProfileRepository
from .entities import AuthSession, AuthUser, PhoneVerification
from .repository import AuthRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
SMS_CODE_PATTERN = re.compile(r"^\d{6}$")


def _validate_email(email: str) -> None:
    ensure(not is_blank(email), "Email cannot be empty")
    ensure(is_valid_email(email), "Invalid email format")


def _validate_password(password: str) -> None:
    ensure(bool(password), "Password cannot be empty")
    ensure(
        len(password) >= MIN_PASSWORD_LENGTH,
        f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
    )


@dataclass
class EmailSignIn:
    email: str
    password: str


class SignInWithEmail(AsyncUseCase):
    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, params: EmailSignIn) -> AuthSession:
        _validate_email(params.email)
        _validate_password(params.password)
        return await self.repository.sign_in_with_email(params.email.strip(), params.password)


@dataclass
class EmailSignUp:
    email: str
    password: str
    confirm_password: str
    display_name: str


class SignUpWithEmail(AsyncUseCase):
    """Create the Firebase account and the matching client profile"""

    def __init__(self, repository: AuthRepository, profiles: ProfileRepository):
        self.repository = repository
        self.profiles = profiles

    async def execute(self, params: EmailSignUp) -> AuthSession:
        _validate_email(params.email)
        _validate_password(params.password)
        name = (params.display_name or "").strip()
        ensure(bool(name), "Display name cannot be empty")
        ensure(len(name) >= 2, "Display name must be at least 2 characters")
        ensure(params.password == params.confirm_password, "Passwords do not match")

        session = await self.repository.sign_up_with_email(params.email.strip(), params.password, name)
        if self.profiles.find_profile(session.user.uid) is None:
            self.profiles.create_profile(
                UserProfile(
                    uid=session.user.uid,
                    email=params.email.strip(),
                    display_name=name,
                    is_email_verified=session.user.is_email_verified,
                )
            )
        logger.info(f"✅ Signed up {session.user.uid}")
        return session


@dataclass
class PhoneSignIn:
    phone_number: str
    recaptcha_token: Optional[str] = None


class SignInWithPhone(AsyncUseCase):
    """Send an SMS code; returns the verification session id"""

    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, params: PhoneSignIn) -> PhoneVerification:
        ensure(not is_blank(params.phone_number), "Phone number cannot be empty")
        ensure(is_valid_vn_phone(params.phone_number), "Invalid Vietnamese phone number")
        return await self.repository.sign_in_with_phone(
            to_e164_vn(params.phone_number), params.recaptcha_token
        )


@dataclass
class PhoneCodeVerification:
    verification_id: str
    sms_code: str


class VerifyPhoneNumber(AsyncUseCase):
    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, params: PhoneCodeVerification) -> AuthSession:
        ensure(not is_blank(params.verification_id), "Verification ID cannot be empty")
        ensure(
            bool(SMS_CODE_PATTERN.match(params.sms_code or "")),
            "Verification code must be 6 digits",
        )
        return await self.repository.verify_phone_number(params.verification_id, params.sms_code)


class SendPasswordResetEmail(AsyncUseCase):
    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, email: str) -> None:
        _validate_email(email)
        await self.repository.send_password_reset_email(email.strip())


class SendEmailVerification(AsyncUseCase):
    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, id_token: str) -> None:
        ensure(not is_blank(id_token), "ID token cannot be empty")
        await self.repository.send_email_verification(id_token)


@dataclass
class AuthProfileUpdate:
    uid: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class UpdateAuthProfile(AsyncUseCase):
    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, params: AuthProfileUpdate) -> AuthUser:
        ensure(not is_blank(params.uid), "User ID cannot be empty")
        if params.display_name is None and params.photo_url is None:
            raise ValidationFailure("Nothing to update")
        if params.display_name is not None:
            ensure(
                len(params.display_name.strip()) >= 2,
                "Display name must be at least 2 characters",
            )
        return await self.repository.update_profile(params.uid, params.display_name, params.photo_url)


@dataclass
class PasswordUpdate:
    uid: str
    new_password: str


class UpdatePassword(AsyncUseCase):
    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, params: PasswordUpdate) -> None:
        ensure(not is_blank(params.uid), "User ID cannot be empty")
        _validate_password(params.new_password)
        await self.repository.update_password(params.uid, params.new_password)


class SignOut(AsyncUseCase):
    """Revoke refresh tokens so other sessions must sign in again"""

    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, uid: str) -> None:
        ensure(not is_blank(uid), "User ID cannot be empty")
        await self.repository.sign_out(uid)


class DeleteAccount(AsyncUseCase):
    def __init__(self, repository: AuthRepository, profiles: ProfileRepository):
        self.repository = repository
        self.profiles = profiles

    async def execute(self, uid: str) -> None:
        ensure(not is_blank(uid), "User ID cannot be empty")
        await self.repository.delete_account(uid)
        self.profiles.delete_profile(uid)


class IsEmailInUse(AsyncUseCase):
    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, email: str) -> bool:
        _validate_email(email)
        return await self.repository.is_email_in_use(email.strip())


class GetAuthUser(AsyncUseCase):
    def __init__(self, repository: AuthRepository):
        self.repository = repository

    async def execute(self, uid: str) -> AuthUser:
        ensure(not is_blank(uid), "User ID cannot be empty")
        return await self.repository.get_user(uid)
