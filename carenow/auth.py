import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from .dependencies import get_admin_repository, get_profile_repository
from .domain.admin.entities import AdminUser
from .domain.admin.repository import AdminRepository
from .domain.profiles.entities import UserProfile
from .domain.profiles.repository import ProfileRepository
from .firebase import get_firebase_app

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def verify_firebase_token(token: str) -> dict:
    """Verify a Firebase ID token and return its decoded claims"""
    try:
        return firebase_auth.verify_id_token(token, app=get_firebase_app())
    except (firebase_exceptions.FirebaseError, ValueError) as e:
        logger.warning(f"⚠️ Token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token") from e


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(status_code=401, detail="Invalid token format. Expected a valid JWT token.")

    claims = verify_firebase_token(token)
    # Firebase ID tokens carry the user ID in 'sub'
    uid = claims.get("uid") or claims.get("sub") or claims.get("user_id")
    if not uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")
    return {**claims, "uid": uid}


async def get_current_user(
    claims: dict = Depends(get_current_claims),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> UserProfile:
    """Profile of the caller, created on first sight from the token claims"""
    profile = profiles.find_profile(claims["uid"])
    if profile:
        return profile

    email = claims.get("email") or ""
    name = (claims.get("name") or email.split("@")[0] or "CareNow user").strip()
    logger.info(f"🆕 Creating profile for {claims['uid']} ({email})")
    return profiles.create_profile(
        UserProfile(
            uid=claims["uid"],
            email=email,
            display_name=name,
            phone_number=claims.get("phone_number"),
            is_email_verified=bool(claims.get("email_verified")),
        )
    )


async def get_current_partner(user: UserProfile = Depends(get_current_user)) -> UserProfile:
    if not user.is_partner:
        logger.warning(f"⚠️ User {user.uid} attempted a partner-only route")
        raise HTTPException(status_code=403, detail="Partner account required")
    return user


async def get_current_admin(
    claims: dict = Depends(get_current_claims),
    admins: AdminRepository = Depends(get_admin_repository),
) -> AdminUser:
    admin = admins.find_admin(claims["uid"])
    if not admin or not admin.is_active:
        logger.warning(f"⚠️ Non-admin {claims['uid']} attempted an admin route")
        raise HTTPException(status_code=403, detail="Admin access required")
    return admin
