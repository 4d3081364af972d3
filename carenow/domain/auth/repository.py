"""
Authentication repository backed by Firebase.

Password and phone sign-in go through the Identity Toolkit REST API (the
Admin SDK cannot verify passwords); account management uses firebase_admin.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

import httpx
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from ...config import FIREBASE_WEB_API_KEY, IDENTITY_TOOLKIT_URL
from ...firebase import get_firebase_app
from ...shared.failures import AuthFailure, NetworkFailure, ServerFailure
from .entities import AuthSession, AuthUser, PhoneVerification

logger = logging.getLogger(__name__)

# Identity Toolkit error codes -> user-facing messages
REST_ERROR_MESSAGES = {
    "EMAIL_NOT_FOUND": "No account found with this email",
    "INVALID_PASSWORD": "Incorrect password",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password",
    "USER_DISABLED": "This account has been disabled",
    "EMAIL_EXISTS": "Email is already in use",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later",
    "INVALID_PHONE_NUMBER": "Invalid phone number",
    "INVALID_CODE": "Invalid verification code",
    "INVALID_SESSION_INFO": "Invalid verification session",
    "SESSION_EXPIRED": "Verification code has expired",
    "INVALID_ID_TOKEN": "Session expired. Please sign in again",
    "QUOTA_EXCEEDED": "SMS quota exceeded. Please try again later",
}


def _from_millis(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.utcfromtimestamp(int(value) / 1000)


class AuthRepository(ABC):
    @abstractmethod
    async def sign_in_with_email(self, email: str, password: str) -> AuthSession: ...

    @abstractmethod
    async def sign_up_with_email(
        self, email: str, password: str, display_name: str
    ) -> AuthSession: ...

    @abstractmethod
    async def sign_in_with_phone(
        self, phone_number: str, recaptcha_token: Optional[str] = None
    ) -> PhoneVerification: ...

    @abstractmethod
    async def verify_phone_number(self, verification_id: str, sms_code: str) -> AuthSession: ...

    @abstractmethod
    async def send_password_reset_email(self, email: str) -> None: ...

    @abstractmethod
    async def send_email_verification(self, id_token: str) -> None: ...

    @abstractmethod
    async def update_profile(
        self, uid: str, display_name: Optional[str], photo_url: Optional[str]
    ) -> AuthUser: ...

    @abstractmethod
    async def update_password(self, uid: str, new_password: str) -> None: ...

    @abstractmethod
    async def sign_out(self, uid: str) -> None: ...

    @abstractmethod
    async def delete_account(self, uid: str) -> None: ...

    @abstractmethod
    async def is_email_in_use(self, email: str) -> bool: ...

    @abstractmethod
    async def get_user(self, uid: str) -> AuthUser: ...


def _user_from_record(record) -> AuthUser:
    metadata = record.user_metadata
    return AuthUser(
        uid=record.uid,
        email=record.email,
        display_name=record.display_name,
        phone_number=record.phone_number,
        is_email_verified=bool(record.email_verified),
        is_phone_verified=record.phone_number is not None,
        photo_url=record.photo_url,
        created_at=_from_millis(metadata.creation_timestamp) if metadata else None,
        last_sign_in_at=_from_millis(metadata.last_sign_in_timestamp) if metadata else None,
    )


def _user_from_lookup(data: dict) -> AuthUser:
    return AuthUser(
        uid=data["localId"],
        email=data.get("email"),
        display_name=data.get("displayName"),
        phone_number=data.get("phoneNumber"),
        is_email_verified=bool(data.get("emailVerified")),
        is_phone_verified=bool(data.get("phoneNumber")),
        photo_url=data.get("photoUrl"),
        created_at=_from_millis(data.get("createdAt")),
        last_sign_in_at=_from_millis(data.get("lastLoginAt")),
    )


class FirebaseAuthRepository(AuthRepository):
    def __init__(
        self,
        api_key: Optional[str] = FIREBASE_WEB_API_KEY,
        base_url: str = IDENTITY_TOOLKIT_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    async def _post(self, endpoint: str, payload: dict) -> dict:
        if not self.api_key:
            logger.error("❌ FIREBASE_WEB_API_KEY not configured")
            raise ServerFailure("Authentication service not configured")

        url = f"{self.base_url}/{endpoint}"
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=15.0) as client:
                response = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ Identity Toolkit request to {endpoint} failed: {e}")
            raise NetworkFailure("Unable to reach authentication service") from e

        if response.status_code != 200:
            try:
                code = response.json().get("error", {}).get("message", "")
            except ValueError:
                code = ""
            # Codes may carry a suffix, e.g. "TOO_MANY_ATTEMPTS_TRY_LATER : ..."
            code = code.split(" ")[0]
            logger.warning(f"⚠️ Identity Toolkit {endpoint} rejected: {code or response.status_code}")
            raise AuthFailure(REST_ERROR_MESSAGES.get(code, "Authentication failed"))

        return response.json()

    async def _session_from(self, data: dict) -> AuthSession:
        lookup = await self._post("accounts:lookup", {"idToken": data["idToken"]})
        users = lookup.get("users") or []
        user = _user_from_lookup(users[0]) if users else AuthUser(uid=data["localId"])
        return AuthSession(
            user=user,
            id_token=data["idToken"],
            refresh_token=data.get("refreshToken", ""),
            expires_in=int(data.get("expiresIn", 3600)),
        )

    async def _admin_call(self, action: str, func, *args, **kwargs):
        """Run a blocking firebase_admin call in a worker thread"""
        try:
            return await asyncio.to_thread(func, *args, app=get_firebase_app(), **kwargs)
        except firebase_auth.UserNotFoundError as e:
            raise AuthFailure("User not found", status_code=404) from e
        except firebase_auth.EmailAlreadyExistsError as e:
            raise AuthFailure("Email is already in use", status_code=409) from e
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logger.error(f"❌ Firebase error while {action}: {e}")
            raise AuthFailure(f"Failed {action}") from e

    async def sign_in_with_email(self, email: str, password: str) -> AuthSession:
        data = await self._post(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        logger.info(f"✅ Email sign-in for {data.get('localId')}")
        return await self._session_from(data)

    async def sign_up_with_email(self, email: str, password: str, display_name: str) -> AuthSession:
        data = await self._post(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        await self._post(
            "accounts:update",
            {"idToken": data["idToken"], "displayName": display_name, "returnSecureToken": False},
        )
        logger.info(f"✅ Account created: {data.get('localId')}")
        return await self._session_from(data)

    async def sign_in_with_phone(
        self, phone_number: str, recaptcha_token: Optional[str] = None
    ) -> PhoneVerification:
        payload = {"phoneNumber": phone_number}
        if recaptcha_token:
            payload["recaptchaToken"] = recaptcha_token
        data = await self._post("accounts:sendVerificationCode", payload)
        return PhoneVerification(verification_id=data["sessionInfo"], phone_number=phone_number)

    async def verify_phone_number(self, verification_id: str, sms_code: str) -> AuthSession:
        data = await self._post(
            "accounts:signInWithPhoneNumber",
            {"sessionInfo": verification_id, "code": sms_code},
        )
        return await self._session_from(data)

    async def send_password_reset_email(self, email: str) -> None:
        await self._post("accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
        logger.info("📧 Password reset email requested")

    async def send_email_verification(self, id_token: str) -> None:
        await self._post("accounts:sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": id_token})

    async def update_profile(
        self, uid: str, display_name: Optional[str], photo_url: Optional[str]
    ) -> AuthUser:
        changes = {}
        if display_name is not None:
            changes["display_name"] = display_name
        if photo_url is not None:
            changes["photo_url"] = photo_url
        record = await self._admin_call("updating profile", firebase_auth.update_user, uid, **changes)
        return _user_from_record(record)

    async def update_password(self, uid: str, new_password: str) -> None:
        await self._admin_call("updating password", firebase_auth.update_user, uid, password=new_password)

    async def sign_out(self, uid: str) -> None:
        await self._admin_call("signing out", firebase_auth.revoke_refresh_tokens, uid)

    async def delete_account(self, uid: str) -> None:
        await self._admin_call("deleting account", firebase_auth.delete_user, uid)
        logger.info(f"🗑️ Deleted Firebase account {uid}")

    async def is_email_in_use(self, email: str) -> bool:
        try:
            await self._admin_call("checking email", firebase_auth.get_user_by_email, email)
        except AuthFailure as failure:
            if failure.status_code == 404:
                return False
            raise
        return True

    async def get_user(self, uid: str) -> AuthUser:
        record = await self._admin_call("loading user", firebase_auth.get_user, uid)
        return _user_from_record(record)
