import fnmatch
import os
from datetime import date, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from carenow import models  # noqa: F401  registers the tables
from carenow.cache import Cache
from carenow.database import Base
from carenow.domain.admin.repository import SqlAlchemyAdminRepository
from carenow.domain.bookings.entities import BookingRequest
from carenow.domain.bookings.repository import SqlAlchemyBookingRepository
from carenow.domain.bookings.usecases import CreateBooking
from carenow.domain.catalog.repository import SqlAlchemyServiceRepository
from carenow.domain.catalog.usecases import SeedServiceCatalog
from carenow.domain.clients.repository import SqlAlchemyPaymentRepository, SqlAlchemyReviewRepository
from carenow.domain.notifications.repository import (
    SqlAlchemyNotificationRepository,
    SqlAlchemyPreferencesRepository,
)
from carenow.domain.notifications.usecases import NotificationDispatcher, SendPushNotification
from carenow.domain.partners.entities import Partner
from carenow.domain.partners.repository import (
    SqlAlchemyOnboardingRepository,
    SqlAlchemyPartnerRepository,
)
from carenow.domain.profiles.entities import UserProfile
from carenow.domain.profiles.repository import SqlAlchemyProfileRepository
from carenow.shared.failures import CacheFailure, NetworkFailure

FULL_WEEK = {
    day: ["08:00-12:00", "13:00-17:00"]
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
}


class MemoryCache(Cache):
    """Dict-backed stand-in for the Redis cache"""

    def __init__(self, available: bool = True):
        super().__init__()
        self.store = {}
        self.available = available

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ttl=3600):
        self.store[key] = value
        return True

    def delete_pattern(self, pattern):
        keys = [k for k in self.store if fnmatch.fnmatch(k, pattern)]
        for key in keys:
            del self.store[key]
        return len(keys)

    def ping(self):
        if not self.available:
            raise CacheFailure("Redis cache unavailable")
        return True


class FakePushSender:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []
        self.topic_messages = []
        self.subscriptions = []

    def send_to_token(self, token, title, body, data=None, image_url=None, urgent=False):
        if self.fail:
            raise NetworkFailure("Push delivery failed: unavailable")
        self.sent.append({"token": token, "title": title, "body": body, "data": data, "urgent": urgent})
        return f"msg-{len(self.sent)}"

    def send_to_topic(self, topic, title, body, data=None):
        self.topic_messages.append((topic, title, body, data))
        return f"topic-msg-{len(self.topic_messages)}"

    def subscribe(self, token, topic):
        self.subscriptions.append((token, topic))

    def unsubscribe(self, token, topic):
        self.subscriptions = [s for s in self.subscriptions if s != (token, topic)]


class FakeStorage:
    def __init__(self):
        self.uploads = {}

    def upload(self, key, content, filename):
        self.uploads[key] = content
        return f"https://cdn.example.com/{key}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def memory_cache():
    return MemoryCache()


@pytest.fixture
def push_sender():
    return FakePushSender()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def services(db, memory_cache):
    return SqlAlchemyServiceRepository(db, memory_cache)


@pytest.fixture
def catalog(services):
    SeedServiceCatalog(services)().unwrap()
    return services


@pytest.fixture
def profiles(db):
    return SqlAlchemyProfileRepository(db)


@pytest.fixture
def partners(db):
    return SqlAlchemyPartnerRepository(db)


@pytest.fixture
def onboarding_repository(db):
    return SqlAlchemyOnboardingRepository(db)


@pytest.fixture
def bookings(db):
    return SqlAlchemyBookingRepository(db)


@pytest.fixture
def notifications(db):
    return SqlAlchemyNotificationRepository(db)


@pytest.fixture
def preferences(db):
    return SqlAlchemyPreferencesRepository(db)


@pytest.fixture
def payments(db):
    return SqlAlchemyPaymentRepository(db)


@pytest.fixture
def reviews(db):
    return SqlAlchemyReviewRepository(db)


@pytest.fixture
def admins(db):
    return SqlAlchemyAdminRepository(db)


@pytest.fixture
def send_push(notifications, preferences, profiles, push_sender):
    return SendPushNotification(notifications, preferences, profiles, push_sender)


@pytest.fixture
def dispatcher(send_push):
    return NotificationDispatcher(send_push)


@pytest.fixture
def client_profile(profiles):
    return profiles.create_profile(
        UserProfile(
            uid="client-1",
            email="client@example.com",
            display_name="Nguyen Van A",
            phone_number="0912345678",
            fcm_token="client-device",
        )
    )


@pytest.fixture
def make_partner(partners, profiles):
    def _make(uid="partner-1", services=("elder_care_basic",), verified=True, **fields):
        profiles.create_profile(
            UserProfile(uid=uid, email=f"{uid}@example.com", display_name=f"Partner {uid}", fcm_token=f"{uid}-device")
        )
        partner = partners.create_partner(
            Partner(
                uid=uid,
                name=fields.pop("name", f"Partner {uid}"),
                phone="0987654321",
                email=f"{uid}@example.com",
                services=list(services),
                working_hours=fields.pop("working_hours", FULL_WEEK),
                price_per_hour=100000,
                **fields,
            )
        )
        if verified:
            partner = partners.update_partner(uid, is_verified=True)
        return partner

    return _make


@pytest.fixture
def upcoming_day():
    return date.today() + timedelta(days=3)


@pytest.fixture
def make_booking(bookings, catalog, partners, dispatcher, client_profile, upcoming_day):
    def _make(partner_id=None, service_id="elder_care_basic", hours=2, **fields):
        request = BookingRequest(
            user_id=fields.pop("user_id", client_profile.uid),
            service_id=service_id,
            scheduled_date=fields.pop("scheduled_date", upcoming_day),
            time_slot=fields.pop("time_slot", "09:00"),
            hours=hours,
            client_address="12 Nguyen Hue, District 1",
            partner_id=partner_id,
            **fields,
        )
        return CreateBooking(bookings, catalog, partners, dispatcher)(request).unwrap()

    return _make
