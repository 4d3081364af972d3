"""Profile endpoints for the signed-in user"""

import dataclasses
import logging

from fastapi import APIRouter, Depends, File, UploadFile

from ...auth import get_current_claims, get_current_user
from ...dependencies import get_object_storage, get_profile_repository
from ...services.storage import ObjectStorage
from ..auth.schemas import MessageResponse
from .entities import UserProfile
from .repository import ProfileRepository
from .schemas import AvatarResponse, FcmTokenRequest, ProfileResponse, ProfileUpdate
from .usecases import (
    AvatarUpload,
    CreateUserProfile,
    FcmTokenUpdate,
    GetUserProfile,
    UpdateFcmToken,
    UpdateProfileAvatar,
    UpdateUserProfile,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.post("/me", response_model=ProfileResponse, status_code=201)
async def create_profile(
    body: ProfileUpdate,
    claims: dict = Depends(get_current_claims),
    repository: ProfileRepository = Depends(get_profile_repository),
):
    """Create the caller's profile explicitly (sign-up usually does this)"""
    fields = body.model_dump(exclude_unset=True)
    profile = UserProfile(
        uid=claims["uid"],
        email=claims.get("email") or "",
        display_name=fields.pop("display_name", None) or claims.get("name") or "",
        is_email_verified=bool(claims.get("email_verified")),
        **fields,
    )
    return ProfileResponse.model_validate(CreateUserProfile(repository)(profile).unwrap())


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user: UserProfile = Depends(get_current_user),
    repository: ProfileRepository = Depends(get_profile_repository),
):
    return ProfileResponse.model_validate(GetUserProfile(repository)(user.uid).unwrap())


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: ProfileUpdate,
    user: UserProfile = Depends(get_current_user),
    repository: ProfileRepository = Depends(get_profile_repository),
):
    updated = dataclasses.replace(user, **body.model_dump(exclude_unset=True))
    return ProfileResponse.model_validate(UpdateUserProfile(repository)(updated).unwrap())


@router.post("/me/avatar", response_model=AvatarResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    user: UserProfile = Depends(get_current_user),
    repository: ProfileRepository = Depends(get_profile_repository),
    storage: ObjectStorage = Depends(get_object_storage),
):
    content = await file.read()
    params = AvatarUpload(uid=user.uid, filename=file.filename or "", content=content)
    url = UpdateProfileAvatar(repository, storage)(params).unwrap()
    return AvatarResponse(avatar_url=url)


@router.put("/me/fcm-token", response_model=MessageResponse)
async def update_fcm_token(
    body: FcmTokenRequest,
    user: UserProfile = Depends(get_current_user),
    repository: ProfileRepository = Depends(get_profile_repository),
):
    UpdateFcmToken(repository)(FcmTokenUpdate(user.uid, body.token)).unwrap()
    return MessageResponse(message="Push token updated")
