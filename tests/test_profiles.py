import dataclasses
from datetime import date

from carenow.domain.profiles.entities import UserProfile
from carenow.domain.profiles.usecases import (
    AvatarUpload,
    CreateUserProfile,
    FcmTokenUpdate,
    GetUserProfile,
    UpdateFcmToken,
    UpdateProfileAvatar,
    UpdateUserProfile,
)
from carenow.shared.failures import DataFailure, ValidationFailure


def test_create_and_get_profile(profiles):
    profile = UserProfile(uid="u-1", email="lan@example.com", display_name="Lan")
    created = CreateUserProfile(profiles)(profile).unwrap()

    assert created.role == "client"
    assert created.created_at is not None
    assert GetUserProfile(profiles)("u-1").unwrap().email == "lan@example.com"


def test_duplicate_profile_is_rejected(profiles, client_profile):
    result = CreateUserProfile(profiles)(
        UserProfile(uid=client_profile.uid, email="other@example.com", display_name="Other")
    )
    assert isinstance(result.failure, ValidationFailure)


def test_profile_validation(profiles):
    create = CreateUserProfile(profiles)
    assert create(UserProfile(uid="u-2", email="bad-email", display_name="Lan")).is_failure
    assert create(UserProfile(uid="u-2", email="lan@example.com", display_name="L")).is_failure
    assert create(
        UserProfile(uid="u-2", email="lan@example.com", display_name="Lan", phone_number="12345")
    ).is_failure
    assert create(
        UserProfile(uid="u-2", email="lan@example.com", display_name="Lan", latitude=95, longitude=10)
    ).is_failure


def test_missing_profile_is_not_found(profiles):
    assert isinstance(GetUserProfile(profiles)("nobody").failure, DataFailure)


def test_update_profile_checks_age(profiles, client_profile):
    update = UpdateUserProfile(profiles)
    too_young = dataclasses.replace(client_profile, date_of_birth=date(date.today().year - 10, 1, 1))
    assert "Age must be between" in update(too_young).failure.message

    adult = dataclasses.replace(client_profile, date_of_birth=date(1990, 5, 1), address="1 Le Loi", city="HCMC")
    updated = update(adult).unwrap()
    assert updated.city == "HCMC"
    assert updated.is_profile_complete


def test_avatar_upload(profiles, client_profile, storage):
    upload = UpdateProfileAvatar(profiles, storage)
    url = upload(AvatarUpload(client_profile.uid, "me.PNG", b"\x89PNG")).unwrap()

    assert url.startswith("https://cdn.example.com/avatars/client-1/")
    assert url.endswith(".png")
    assert profiles.get_profile(client_profile.uid).avatar == url


def test_avatar_rejects_bad_files(profiles, client_profile, storage):
    upload = UpdateProfileAvatar(profiles, storage)
    assert upload(AvatarUpload(client_profile.uid, "me.gif", b"GIF89a")).is_failure
    assert upload(AvatarUpload(client_profile.uid, "me.jpg", b"")).is_failure
    assert upload(AvatarUpload(client_profile.uid, "me.jpg", b"x" * (5 * 1024 * 1024 + 1))).is_failure
    assert storage.uploads == {}


def test_avatar_for_unknown_user_does_not_upload(profiles, storage):
    result = UpdateProfileAvatar(profiles, storage)(AvatarUpload("ghost", "me.jpg", b"jpeg"))
    assert isinstance(result.failure, DataFailure)
    assert storage.uploads == {}


def test_update_fcm_token(profiles, client_profile):
    UpdateFcmToken(profiles)(FcmTokenUpdate(client_profile.uid, "  new-device  ")).unwrap()
    assert profiles.get_profile(client_profile.uid).fcm_token == "new-device"
    assert UpdateFcmToken(profiles)(FcmTokenUpdate(client_profile.uid, " ")).is_failure
