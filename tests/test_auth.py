import json
import threading
from datetime import datetime
from types import SimpleNamespace

import httpx
import pytest
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from carenow.domain.auth import repository as auth_repository
from carenow.domain.auth.repository import FirebaseAuthRepository
from carenow.domain.auth.usecases import (
    AuthProfileUpdate,
    DeleteAccount,
    EmailSignIn,
    EmailSignUp,
    GetAuthUser,
    IsEmailInUse,
    PasswordUpdate,
    PhoneCodeVerification,
    PhoneSignIn,
    SendEmailVerification,
    SendPasswordResetEmail,
    SignInWithEmail,
    SignInWithPhone,
    SignOut,
    SignUpWithEmail,
    UpdateAuthProfile,
    UpdatePassword,
    VerifyPhoneNumber,
)
from carenow.shared.failures import AuthFailure, NetworkFailure, ServerFailure, ValidationFailure

pytestmark = pytest.mark.asyncio

LOOKUP = {
    "users": [
        {
            "localId": "uid-1",
            "email": "lan@example.com",
            "displayName": "Lan",
            "emailVerified": True,
            "createdAt": "1700000000000",
        }
    ]
}


class IdentityToolkitStub:
    """Answers Identity Toolkit calls from a {endpoint: (status, body)} table"""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("/", 1)[-1]
        self.calls.append((endpoint, json.loads(request.content or b"{}")))
        status, body = self.responses[endpoint]
        return httpx.Response(status, json=body)


def repository_for(stub) -> FirebaseAuthRepository:
    return FirebaseAuthRepository(api_key="test-key", transport=httpx.MockTransport(stub))


def error(code: str):
    return 400, {"error": {"code": 400, "message": code}}


async def test_sign_in_returns_session_with_looked_up_user():
    stub = IdentityToolkitStub(
        {
            "accounts:signInWithPassword": (
                200,
                {"localId": "uid-1", "idToken": "id-token", "refreshToken": "refresh", "expiresIn": "3600"},
            ),
            "accounts:lookup": (200, LOOKUP),
        }
    )
    session = (await SignInWithEmail(repository_for(stub))(EmailSignIn(" lan@example.com ", "secret1"))).unwrap()

    assert session.id_token == "id-token"
    assert session.expires_in == 3600
    assert session.user.display_name == "Lan"
    assert session.user.is_email_verified
    assert session.user.created_at is not None
    assert stub.calls[0][1]["email"] == "lan@example.com"


async def test_rest_error_codes_become_messages():
    stub = IdentityToolkitStub({"accounts:signInWithPassword": error("INVALID_PASSWORD")})
    result = await SignInWithEmail(repository_for(stub))(EmailSignIn("lan@example.com", "secret1"))

    assert isinstance(result.failure, AuthFailure)
    assert result.failure.message == "Incorrect password"


async def test_error_code_suffix_is_ignored():
    stub = IdentityToolkitStub(
        {"accounts:signInWithPassword": error("TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled")}
    )
    result = await SignInWithEmail(repository_for(stub))(EmailSignIn("lan@example.com", "secret1"))
    assert result.failure.message == "Too many attempts. Please try again later"


async def test_unreachable_service_is_a_network_failure():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    repository = FirebaseAuthRepository(api_key="test-key", transport=httpx.MockTransport(refuse))
    result = await SignInWithEmail(repository)(EmailSignIn("lan@example.com", "secret1"))
    assert isinstance(result.failure, NetworkFailure)
    assert result.failure.status_code == 503


async def test_missing_api_key_is_a_server_failure():
    repository = FirebaseAuthRepository(api_key=None)
    result = await SignInWithEmail(repository)(EmailSignIn("lan@example.com", "secret1"))
    assert isinstance(result.failure, ServerFailure)


async def test_sign_in_validates_before_calling_out():
    stub = IdentityToolkitStub({})
    sign_in = SignInWithEmail(repository_for(stub))
    assert isinstance((await sign_in(EmailSignIn("not-an-email", "secret1"))).failure, ValidationFailure)
    assert isinstance((await sign_in(EmailSignIn("lan@example.com", "123"))).failure, ValidationFailure)
    assert stub.calls == []


async def test_sign_up_creates_client_profile(profiles):
    stub = IdentityToolkitStub(
        {
            "accounts:signUp": (200, {"localId": "uid-1", "idToken": "id-token", "refreshToken": "r"}),
            "accounts:update": (200, {}),
            "accounts:lookup": (200, LOOKUP),
        }
    )
    sign_up = SignUpWithEmail(repository_for(stub), profiles)
    session = (await sign_up(EmailSignUp("lan@example.com", "secret1", "secret1", "Lan"))).unwrap()

    profile = profiles.get_profile(session.user.uid)
    assert profile.display_name == "Lan"
    assert profile.role == "client"
    assert [c[0] for c in stub.calls] == ["accounts:signUp", "accounts:update", "accounts:lookup"]


async def test_sign_up_requires_matching_passwords(profiles):
    stub = IdentityToolkitStub({})
    result = await SignUpWithEmail(repository_for(stub), profiles)(
        EmailSignUp("lan@example.com", "secret1", "secret2", "Lan")
    )
    assert result.failure.message == "Passwords do not match"


async def test_phone_sign_in_sends_e164_number():
    stub = IdentityToolkitStub({"accounts:sendVerificationCode": (200, {"sessionInfo": "session-1"})})
    verification = (await SignInWithPhone(repository_for(stub))(PhoneSignIn("0912 345 678"))).unwrap()

    assert verification.verification_id == "session-1"
    assert stub.calls[0][1] == {"phoneNumber": "+84912345678"}


async def test_phone_sign_in_rejects_foreign_numbers():
    result = await SignInWithPhone(repository_for(IdentityToolkitStub({})))(PhoneSignIn("+1 415 555 0100"))
    assert isinstance(result.failure, ValidationFailure)


async def test_verify_phone_code_format():
    stub = IdentityToolkitStub({"accounts:signInWithPhoneNumber": error("INVALID_CODE")})
    verify = VerifyPhoneNumber(repository_for(stub))

    assert (await verify(PhoneCodeVerification("session-1", "12ab56"))).failure.message == (
        "Verification code must be 6 digits"
    )
    assert (await verify(PhoneCodeVerification("session-1", "123456"))).failure.message == (
        "Invalid verification code"
    )


async def test_password_reset_request():
    stub = IdentityToolkitStub({"accounts:sendOobCode": (200, {"email": "lan@example.com"})})
    (await SendPasswordResetEmail(repository_for(stub))("lan@example.com")).unwrap()
    assert stub.calls[0][1] == {"requestType": "PASSWORD_RESET", "email": "lan@example.com"}


async def test_auth_profile_update_needs_a_change():
    result = await UpdateAuthProfile(repository_for(IdentityToolkitStub({})))(AuthProfileUpdate("uid-1"))
    assert result.failure.message == "Nothing to update"


async def test_send_email_verification():
    stub = IdentityToolkitStub({"accounts:sendOobCode": (200, {"email": "lan@example.com"})})
    send = SendEmailVerification(repository_for(stub))

    (await send("id-token")).unwrap()
    assert stub.calls == [("accounts:sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": "id-token"})]

    blank = await send("  ")
    assert blank.failure.message == "ID token cannot be empty"
    assert len(stub.calls) == 1


# ============================================================================
# ACCOUNT MANAGEMENT (firebase_admin)
# ============================================================================


class AdminSdk:
    """Swaps firebase_admin.auth functions for recorders"""

    def __init__(self, monkeypatch):
        self.monkeypatch = monkeypatch
        self.calls = []
        self.threads = []
        monkeypatch.setattr(auth_repository, "get_firebase_app", lambda: "test-app")

    def answer(self, name, result=None, error=None):
        def call(*args, app, **kwargs):
            self.calls.append((name, args, kwargs))
            self.threads.append(threading.get_ident())
            assert app == "test-app"
            if error is not None:
                raise error
            return result

        self.monkeypatch.setattr(firebase_auth, name, call)


@pytest.fixture
def admin_sdk(monkeypatch):
    return AdminSdk(monkeypatch)


def user_record(**fields):
    values = dict(
        uid="uid-1",
        email="lan@example.com",
        display_name="Lan",
        phone_number="+84912345678",
        email_verified=True,
        photo_url=None,
        user_metadata=SimpleNamespace(creation_timestamp=1700000000000, last_sign_in_timestamp=None),
    )
    values.update(fields)
    return SimpleNamespace(**values)


def repository() -> FirebaseAuthRepository:
    return FirebaseAuthRepository(api_key="test-key", transport=httpx.MockTransport(IdentityToolkitStub({})))


async def test_admin_calls_run_off_the_event_loop(admin_sdk):
    admin_sdk.answer("revoke_refresh_tokens")
    (await SignOut(repository())("uid-1")).unwrap()

    assert admin_sdk.calls == [("revoke_refresh_tokens", ("uid-1",), {})]
    assert admin_sdk.threads[0] != threading.get_ident()


async def test_update_password(admin_sdk):
    admin_sdk.answer("update_user", user_record())
    update = UpdatePassword(repository())

    (await update(PasswordUpdate("uid-1", "new-secret"))).unwrap()
    assert admin_sdk.calls == [("update_user", ("uid-1",), {"password": "new-secret"})]

    short = await update(PasswordUpdate("uid-1", "abc"))
    assert isinstance(short.failure, ValidationFailure)
    assert len(admin_sdk.calls) == 1


async def test_sign_out_needs_a_user(admin_sdk):
    admin_sdk.answer("revoke_refresh_tokens")
    assert (await SignOut(repository())("")).failure.message == "User ID cannot be empty"
    assert admin_sdk.calls == []


async def test_delete_account_removes_profile(admin_sdk, profiles, client_profile):
    admin_sdk.answer("delete_user")
    (await DeleteAccount(repository(), profiles)("client-1")).unwrap()

    assert admin_sdk.calls == [("delete_user", ("client-1",), {})]
    assert profiles.find_profile("client-1") is None


async def test_delete_account_keeps_profile_when_firebase_fails(admin_sdk, profiles, client_profile):
    admin_sdk.answer("delete_user", error=firebase_exceptions.UnavailableError("backend down"))
    failed = await DeleteAccount(repository(), profiles)("client-1")

    assert isinstance(failed.failure, AuthFailure)
    assert failed.failure.message == "Failed deleting account"
    assert profiles.find_profile("client-1") is not None


async def test_email_in_use(admin_sdk):
    admin_sdk.answer("get_user_by_email", user_record())
    assert (await IsEmailInUse(repository())(" lan@example.com ")).unwrap() is True
    assert admin_sdk.calls == [("get_user_by_email", ("lan@example.com",), {})]


async def test_unknown_email_is_not_in_use(admin_sdk):
    admin_sdk.answer("get_user_by_email", error=firebase_auth.UserNotFoundError("No user record found"))
    assert (await IsEmailInUse(repository())("new@example.com")).unwrap() is False


async def test_email_check_surfaces_other_firebase_errors(admin_sdk):
    admin_sdk.answer("get_user_by_email", error=firebase_exceptions.UnavailableError("backend down"))
    result = await IsEmailInUse(repository())("new@example.com")
    assert isinstance(result.failure, AuthFailure)
    assert result.failure.message == "Failed checking email"

    invalid = await IsEmailInUse(repository())("not-an-email")
    assert isinstance(invalid.failure, ValidationFailure)


async def test_get_auth_user(admin_sdk):
    admin_sdk.answer("get_user", user_record())
    user = (await GetAuthUser(repository())("uid-1")).unwrap()

    assert user.uid == "uid-1"
    assert user.display_name == "Lan"
    assert user.is_email_verified
    assert user.is_phone_verified
    assert user.created_at == datetime(2023, 11, 14, 22, 13, 20)
    assert user.last_sign_in_at is None


async def test_get_missing_auth_user(admin_sdk):
    admin_sdk.answer("get_user", error=firebase_auth.UserNotFoundError("No user record found"))
    missing = await GetAuthUser(repository())("ghost")

    assert missing.failure.status_code == 404
    assert missing.failure.message == "User not found"
