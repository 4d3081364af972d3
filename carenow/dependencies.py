"""FastAPI dependency factories shared by the routers"""

from fastapi import Depends
from sqlalchemy.orm import Session

from .cache import Cache, cache
from .database import get_db
from .domain.admin.repository import AdminRepository, SqlAlchemyAdminRepository
from .domain.auth.repository import AuthRepository, FirebaseAuthRepository
from .domain.bookings.repository import BookingRepository, SqlAlchemyBookingRepository
from .domain.catalog.repository import ServiceRepository, SqlAlchemyServiceRepository
from .domain.clients.repository import (
    PaymentRepository,
    ReviewRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemyReviewRepository,
)
from .domain.notifications.repository import (
    NotificationRepository,
    PreferencesRepository,
    SqlAlchemyNotificationRepository,
    SqlAlchemyPreferencesRepository,
)
from .domain.notifications.usecases import NotificationDispatcher, SendPushNotification
from .domain.partners.repository import (
    OnboardingRepository,
    PartnerRepository,
    SqlAlchemyOnboardingRepository,
    SqlAlchemyPartnerRepository,
)
from .domain.profiles.repository import ProfileRepository, SqlAlchemyProfileRepository
from .services.push_service import PushSender
from .services.storage import ObjectStorage


def get_cache() -> Cache:
    return cache


def get_auth_repository() -> AuthRepository:
    return FirebaseAuthRepository()


def get_push_sender() -> PushSender:
    return PushSender()


def get_object_storage() -> ObjectStorage:
    return ObjectStorage()


def get_service_repository(
    db: Session = Depends(get_db), store: Cache = Depends(get_cache)
) -> ServiceRepository:
    return SqlAlchemyServiceRepository(db, store)


def get_profile_repository(db: Session = Depends(get_db)) -> ProfileRepository:
    return SqlAlchemyProfileRepository(db)


def get_partner_repository(db: Session = Depends(get_db)) -> PartnerRepository:
    return SqlAlchemyPartnerRepository(db)


def get_onboarding_repository(db: Session = Depends(get_db)) -> OnboardingRepository:
    return SqlAlchemyOnboardingRepository(db)


def get_booking_repository(db: Session = Depends(get_db)) -> BookingRepository:
    return SqlAlchemyBookingRepository(db)


def get_notification_repository(db: Session = Depends(get_db)) -> NotificationRepository:
    return SqlAlchemyNotificationRepository(db)


def get_preferences_repository(db: Session = Depends(get_db)) -> PreferencesRepository:
    return SqlAlchemyPreferencesRepository(db)


def get_payment_repository(db: Session = Depends(get_db)) -> PaymentRepository:
    return SqlAlchemyPaymentRepository(db)


def get_review_repository(db: Session = Depends(get_db)) -> ReviewRepository:
    return SqlAlchemyReviewRepository(db)


def get_admin_repository(db: Session = Depends(get_db)) -> AdminRepository:
    return SqlAlchemyAdminRepository(db)


def get_send_push(
    notifications: NotificationRepository = Depends(get_notification_repository),
    preferences: PreferencesRepository = Depends(get_preferences_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
    sender: PushSender = Depends(get_push_sender),
) -> SendPushNotification:
    return SendPushNotification(notifications, preferences, profiles, sender)


def get_dispatcher(
    send_push: SendPushNotification = Depends(get_send_push),
) -> NotificationDispatcher:
    return NotificationDispatcher(send_push)
