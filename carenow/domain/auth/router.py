"""Auth endpoints backed by Firebase Authentication"""

import logging

from fastapi import APIRouter, Depends, Query

from ...auth import get_current_claims
from ...dependencies import get_auth_repository, get_profile_repository
from ..profiles.repository import ProfileRepository
from .repository import AuthRepository
from .schemas import (
    AuthProfileUpdateRequest,
    AuthSessionResponse,
    AuthUserResponse,
    EmailInUseResponse,
    EmailRequest,
    EmailVerificationRequest,
    MessageResponse,
    PasswordUpdateRequest,
    PhoneSignInRequest,
    PhoneVerificationResponse,
    PhoneVerifyRequest,
    SignInRequest,
    SignUpRequest,
)
from .usecases import (
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

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# ============================================================================
# SIGN IN / SIGN UP
# ============================================================================


@router.post("/sign-in", response_model=AuthSessionResponse)
async def sign_in(body: SignInRequest, repository: AuthRepository = Depends(get_auth_repository)):
    session = (await SignInWithEmail(repository)(EmailSignIn(body.email, body.password))).unwrap()
    return AuthSessionResponse.model_validate(session)


@router.post("/sign-up", response_model=AuthSessionResponse, status_code=201)
async def sign_up(
    body: SignUpRequest,
    repository: AuthRepository = Depends(get_auth_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    params = EmailSignUp(body.email, body.password, body.confirm_password, body.display_name)
    session = (await SignUpWithEmail(repository, profiles)(params)).unwrap()
    return AuthSessionResponse.model_validate(session)


@router.post("/phone/send-code", response_model=PhoneVerificationResponse)
async def send_phone_code(
    body: PhoneSignInRequest, repository: AuthRepository = Depends(get_auth_repository)
):
    params = PhoneSignIn(body.phone_number, body.recaptcha_token)
    verification = (await SignInWithPhone(repository)(params)).unwrap()
    return PhoneVerificationResponse.model_validate(verification)


@router.post("/phone/verify", response_model=AuthSessionResponse)
async def verify_phone(body: PhoneVerifyRequest, repository: AuthRepository = Depends(get_auth_repository)):
    params = PhoneCodeVerification(body.verification_id, body.sms_code)
    session = (await VerifyPhoneNumber(repository)(params)).unwrap()
    return AuthSessionResponse.model_validate(session)


@router.post("/password-reset", response_model=MessageResponse)
async def password_reset(body: EmailRequest, repository: AuthRepository = Depends(get_auth_repository)):
    (await SendPasswordResetEmail(repository)(body.email)).unwrap()
    return MessageResponse(message="Password reset email sent")


@router.post("/email-verification", response_model=MessageResponse)
async def email_verification(
    body: EmailVerificationRequest, repository: AuthRepository = Depends(get_auth_repository)
):
    (await SendEmailVerification(repository)(body.id_token)).unwrap()
    return MessageResponse(message="Verification email sent")


@router.get("/email-in-use", response_model=EmailInUseResponse)
async def email_in_use(email: str = Query(...), repository: AuthRepository = Depends(get_auth_repository)):
    in_use = (await IsEmailInUse(repository)(email)).unwrap()
    return EmailInUseResponse(email=email, in_use=in_use)


# ============================================================================
# SIGNED-IN ACCOUNT
# ============================================================================


@router.get("/me", response_model=AuthUserResponse)
async def get_me(
    claims: dict = Depends(get_current_claims),
    repository: AuthRepository = Depends(get_auth_repository),
):
    user = (await GetAuthUser(repository)(claims["uid"])).unwrap()
    return AuthUserResponse.model_validate(user)


@router.patch("/profile", response_model=AuthUserResponse)
async def update_auth_profile(
    body: AuthProfileUpdateRequest,
    claims: dict = Depends(get_current_claims),
    repository: AuthRepository = Depends(get_auth_repository),
):
    params = AuthProfileUpdate(claims["uid"], body.display_name, body.photo_url)
    user = (await UpdateAuthProfile(repository)(params)).unwrap()
    return AuthUserResponse.model_validate(user)


@router.post("/password", response_model=MessageResponse)
async def update_password(
    body: PasswordUpdateRequest,
    claims: dict = Depends(get_current_claims),
    repository: AuthRepository = Depends(get_auth_repository),
):
    (await UpdatePassword(repository)(PasswordUpdate(claims["uid"], body.new_password))).unwrap()
    return MessageResponse(message="Password updated")


@router.post("/sign-out", response_model=MessageResponse)
async def sign_out(
    claims: dict = Depends(get_current_claims),
    repository: AuthRepository = Depends(get_auth_repository),
):
    (await SignOut(repository)(claims["uid"])).unwrap()
    return MessageResponse(message="Signed out")


@router.delete("/account", response_model=MessageResponse)
async def delete_account(
    claims: dict = Depends(get_current_claims),
    repository: AuthRepository = Depends(get_auth_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    (await DeleteAccount(repository, profiles)(claims["uid"])).unwrap()
    logger.info(f"🗑️ Account {claims['uid']} deleted")
    return MessageResponse(message="Account deleted")
