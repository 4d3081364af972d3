import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ...services.push_service import PushSender
from ...shared.clock import local_now
from ...shared.failures import Failure, NetworkFailure, forbidden
from ...shared.usecase import UseCase
from ...shared.validators import TOPIC_PATTERN, ensure, is_blank, is_valid_time_slot
from ..profiles.repository import ProfileRepository
from .entities import (
    Notification,
    NotificationCategory,
    NotificationPreferences,
    NotificationPriority,
    PushResult,
)
from .repository import NotificationRepository, PreferencesRepository

logger = logging.getLogger(__name__)

MAX_NOTIFICATION_LIMIT = 100


@dataclass
class NotificationDraft:
    user_id: str
    title: str
    body: str
    type: str
    data: dict = field(default_factory=dict)
    priority: NotificationPriority = NotificationPriority.NORMAL
    category: NotificationCategory = NotificationCategory.SYSTEM
    image_url: Optional[str] = None
    action_url: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    is_persistent: bool = False


class CreateNotification(UseCase):
    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    def execute(self, draft: NotificationDraft) -> Notification:
        ensure(not is_blank(draft.user_id), "User ID cannot be empty")
        ensure(not is_blank(draft.title), "Title cannot be empty")
        ensure(not is_blank(draft.body), "Body cannot be empty")
        ensure(not is_blank(draft.type), "Notification type cannot be empty")

        notification = Notification(
            id=str(uuid.uuid4()),
            user_id=draft.user_id,
            title=draft.title.strip(),
            body=draft.body.strip(),
            type=draft.type,
            data=dict(draft.data),
            created_at=datetime.utcnow(),
            priority=draft.priority,
            category=draft.category,
            image_url=draft.image_url,
            action_url=draft.action_url,
            scheduled_at=draft.scheduled_at,
            is_scheduled=draft.scheduled_at is not None,
            is_persistent=draft.is_persistent,
        )
        return self.repository.create_notification(notification)


@dataclass
class NotificationQuery:
    user_id: str
    limit: int = 50
    unread_only: bool = False
    category: Optional[NotificationCategory] = None


class GetUserNotifications(UseCase):
    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    def execute(self, params: NotificationQuery) -> list[Notification]:
        ensure(not is_blank(params.user_id), "User ID cannot be empty")
        ensure(
            0 < params.limit <= MAX_NOTIFICATION_LIMIT,
            f"Limit must be between 1 and {MAX_NOTIFICATION_LIMIT}",
        )
        return self.repository.get_user_notifications(
            params.user_id,
            params.limit,
            params.unread_only,
            params.category,
            datetime.utcnow(),
        )


class GetUnreadCount(UseCase):
    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    def execute(self, user_id: str) -> int:
        ensure(not is_blank(user_id), "User ID cannot be empty")
        return self.repository.count_unread(user_id, datetime.utcnow())


@dataclass
class NotificationRef:
    user_id: str
    notification_id: str


def _owned(repository: NotificationRepository, ref: NotificationRef) -> Notification:
    ensure(not is_blank(ref.notification_id), "Notification ID cannot be empty")
    notification = repository.get_notification(ref.notification_id)
    if notification.user_id != ref.user_id:
        raise forbidden("You cannot modify this notification")
    return notification


class MarkNotificationAsRead(UseCase):
    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    def execute(self, ref: NotificationRef) -> Notification:
        notification = _owned(self.repository, ref)
        if notification.is_read:
            return notification
        return self.repository.mark_as_read(notification.id, datetime.utcnow())


class MarkAllNotificationsAsRead(UseCase):
    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    def execute(self, user_id: str) -> int:
        ensure(not is_blank(user_id), "User ID cannot be empty")
        return self.repository.mark_all_as_read(user_id, datetime.utcnow())


class DeleteNotification(UseCase):
    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    def execute(self, ref: NotificationRef) -> None:
        notification = _owned(self.repository, ref)
        self.repository.delete_notification(notification.id)


class GetNotificationPreferences(UseCase):
    """Stored preferences, or unsaved defaults for users who never changed them"""

    def __init__(self, repository: PreferencesRepository):
        self.repository = repository

    def execute(self, user_id: str) -> NotificationPreferences:
        ensure(not is_blank(user_id), "User ID cannot be empty")
        return self.repository.get_preferences(user_id) or NotificationPreferences(user_id=user_id)


class UpdateNotificationPreferences(UseCase):
    def __init__(self, repository: PreferencesRepository):
        self.repository = repository

    def execute(self, preferences: NotificationPreferences) -> NotificationPreferences:
        ensure(not is_blank(preferences.user_id), "User ID cannot be empty")
        for value in (preferences.quiet_hours_start, preferences.quiet_hours_end):
            if value is not None:
                ensure(is_valid_time_slot(value), f"Invalid quiet hours time: {value}")
        if preferences.quiet_hours_enabled:
            ensure(
                bool(preferences.quiet_hours_start and preferences.quiet_hours_end),
                "Quiet hours need both a start and an end time",
            )
        return self.repository.save_preferences(preferences)


class SendPushNotification(UseCase):
    """
    Persist a notification and deliver it over FCM when the recipient's
    preferences allow it and a device token is registered.
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        preferences: PreferencesRepository,
        profiles: ProfileRepository,
        sender: PushSender,
    ):
        self.create = CreateNotification(notifications)
        self.preferences = preferences
        self.profiles = profiles
        self.sender = sender

    def execute(self, draft: NotificationDraft) -> PushResult:
        notification = self.create(draft).unwrap()
        now = datetime.utcnow()

        if not notification.should_show_now(now):
            return PushResult(notification, delivered=False, reason="scheduled")

        prefs = self.preferences.get_preferences(draft.user_id) or NotificationPreferences(
            user_id=draft.user_id
        )
        if not prefs.should_show_notification(notification, local_now()):
            logger.info(f"🔕 Push {notification.type} suppressed for {draft.user_id}")
            return PushResult(notification, delivered=False, reason="suppressed_by_preferences")

        profile = self.profiles.find_profile(draft.user_id)
        if profile is None or not profile.fcm_token:
            return PushResult(notification, delivered=False, reason="no_token")

        data = {
            **notification.data,
            "notification_id": notification.id,
            "type": notification.type,
            "category": notification.category.value,
        }
        try:
            self.sender.send_to_token(
                profile.fcm_token,
                notification.title,
                notification.body if prefs.show_preview else "",
                data=data,
                image_url=notification.image_url,
                urgent=notification.priority >= NotificationPriority.HIGH,
            )
        except NetworkFailure as e:
            logger.warning(f"⚠️ Push delivery failed for {draft.user_id}: {e.message}")
            return PushResult(notification, delivered=False, reason="delivery_failed")
        return PushResult(notification, delivered=True, reason="sent")


@dataclass
class TopicMessage:
    topic: str
    title: str
    body: str
    data: dict = field(default_factory=dict)


def _validate_topic(topic: str) -> None:
    ensure(not is_blank(topic), "Topic cannot be empty")
    ensure(bool(TOPIC_PATTERN.match(topic)), f"Invalid topic name: {topic}")


class SendTopicNotification(UseCase):
    def __init__(self, sender: PushSender):
        self.sender = sender

    def execute(self, message: TopicMessage) -> str:
        _validate_topic(message.topic)
        ensure(not is_blank(message.title), "Title cannot be empty")
        ensure(not is_blank(message.body), "Body cannot be empty")
        return self.sender.send_to_topic(message.topic, message.title, message.body, message.data)


@dataclass
class TopicSubscription:
    user_id: str
    topic: str


class SubscribeToTopic(UseCase):
    def __init__(self, profiles: ProfileRepository, sender: PushSender):
        self.profiles = profiles
        self.sender = sender

    def execute(self, params: TopicSubscription) -> list[str]:
        _validate_topic(params.topic)
        profile = self.profiles.get_profile(params.user_id)
        ensure(bool(profile.fcm_token), "Register a device before subscribing to topics")
        self.sender.subscribe(profile.fcm_token, params.topic)
        topics = sorted(set(profile.topics) | {params.topic})
        self.profiles.set_topics(params.user_id, topics)
        return topics


class UnsubscribeFromTopic(UseCase):
    def __init__(self, profiles: ProfileRepository, sender: PushSender):
        self.profiles = profiles
        self.sender = sender

    def execute(self, params: TopicSubscription) -> list[str]:
        _validate_topic(params.topic)
        profile = self.profiles.get_profile(params.user_id)
        if profile.fcm_token:
            self.sender.unsubscribe(profile.fcm_token, params.topic)
        topics = [t for t in profile.topics if t != params.topic]
        self.profiles.set_topics(params.user_id, topics)
        return topics


class NotificationDispatcher:
    """
    Fire-and-forget notifications raised by other features (bookings,
    payments, reviews). Delivery problems are logged, never propagated.
    """

    def __init__(self, send_push: SendPushNotification):
        self.send_push = send_push

    def notify(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        body: str,
        category: NotificationCategory = NotificationCategory.SYSTEM,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        data: Optional[dict] = None,
    ) -> Optional[PushResult]:
        if not user_id:
            return None
        result = self.send_push(
            NotificationDraft(
                user_id=user_id,
                title=title,
                body=body,
                type=notification_type,
                data=data or {},
                priority=priority,
                category=category,
            )
        )
        return result.fold(self._log_failure, lambda push: push)

    @staticmethod
    def _log_failure(failure: Failure) -> None:
        logger.warning(f"⚠️ Notification delivery failed: {failure.message}")
        return None
