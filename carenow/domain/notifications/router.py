"""Notification inbox, preferences, topics and admin push endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...auth import get_current_admin, get_current_user
from ...dependencies import (
    get_admin_repository,
    get_notification_repository,
    get_preferences_repository,
    get_profile_repository,
    get_push_sender,
    get_send_push,
)
from ...services.push_service import PushSender
from ..admin.entities import ActivityType, AdminPermission, AdminUser
from ..admin.repository import AdminRepository
from ..admin.usecases import require_permission
from ..auth.schemas import MessageResponse
from ..profiles.entities import UserProfile
from ..profiles.repository import ProfileRepository
from .entities import NotificationCategory, NotificationPreferences
from .repository import NotificationRepository, PreferencesRepository
from .schemas import (
    MarkAllResponse,
    NotificationResponse,
    PreferencesBody,
    PreferencesResponse,
    PushRequest,
    PushResultResponse,
    TopicMessageRequest,
    TopicMessageResponse,
    TopicsResponse,
    UnreadCountResponse,
)
from .usecases import (
    DeleteNotification,
    GetNotificationPreferences,
    GetUnreadCount,
    GetUserNotifications,
    MarkAllNotificationsAsRead,
    MarkNotificationAsRead,
    NotificationDraft,
    NotificationQuery,
    NotificationRef,
    SendPushNotification,
    SendTopicNotification,
    SubscribeToTopic,
    TopicMessage,
    TopicSubscription,
    UnsubscribeFromTopic,
    UpdateNotificationPreferences,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


# ============================================================================
# INBOX
# ============================================================================


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    limit: int = Query(50),
    unread_only: bool = Query(False),
    category: Optional[str] = Query(None),
    user: UserProfile = Depends(get_current_user),
    repository: NotificationRepository = Depends(get_notification_repository),
):
    query = NotificationQuery(
        user_id=user.uid,
        limit=limit,
        unread_only=unread_only,
        category=NotificationCategory.from_string(category) if category else None,
    )
    found = GetUserNotifications(repository)(query).unwrap()
    return [NotificationResponse.model_validate(n) for n in found]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: UserProfile = Depends(get_current_user),
    repository: NotificationRepository = Depends(get_notification_repository),
):
    return UnreadCountResponse(unread=GetUnreadCount(repository)(user.uid).unwrap())


@router.post("/read-all", response_model=MarkAllResponse)
async def mark_all_read(
    user: UserProfile = Depends(get_current_user),
    repository: NotificationRepository = Depends(get_notification_repository),
):
    return MarkAllResponse(updated=MarkAllNotificationsAsRead(repository)(user.uid).unwrap())


# ============================================================================
# PREFERENCES
# ============================================================================


@router.get("/preferences", response_model=PreferencesResponse)
async def get_preferences(
    user: UserProfile = Depends(get_current_user),
    repository: PreferencesRepository = Depends(get_preferences_repository),
):
    prefs = GetNotificationPreferences(repository)(user.uid).unwrap()
    return PreferencesResponse.model_validate(prefs)


@router.put("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    body: PreferencesBody,
    user: UserProfile = Depends(get_current_user),
    repository: PreferencesRepository = Depends(get_preferences_repository),
):
    # Omitted maps fall back to the defaults
    fields = {k: v for k, v in body.model_dump().items() if v is not None}
    prefs = NotificationPreferences(user_id=user.uid, **fields)
    return PreferencesResponse.model_validate(UpdateNotificationPreferences(repository)(prefs).unwrap())


# ============================================================================
# TOPICS
# ============================================================================


@router.post("/topics/{topic}/subscribe", response_model=TopicsResponse)
async def subscribe(
    topic: str,
    user: UserProfile = Depends(get_current_user),
    profiles: ProfileRepository = Depends(get_profile_repository),
    sender: PushSender = Depends(get_push_sender),
):
    topics = SubscribeToTopic(profiles, sender)(TopicSubscription(user.uid, topic)).unwrap()
    return TopicsResponse(topics=topics)


@router.post("/topics/{topic}/unsubscribe", response_model=TopicsResponse)
async def unsubscribe(
    topic: str,
    user: UserProfile = Depends(get_current_user),
    profiles: ProfileRepository = Depends(get_profile_repository),
    sender: PushSender = Depends(get_push_sender),
):
    topics = UnsubscribeFromTopic(profiles, sender)(TopicSubscription(user.uid, topic)).unwrap()
    return TopicsResponse(topics=topics)


# ============================================================================
# ADMIN SENDING
# ============================================================================


@router.post("/send", response_model=PushResultResponse)
async def send_push(
    body: PushRequest,
    admin: AdminUser = Depends(get_current_admin),
    send_push_notification: SendPushNotification = Depends(get_send_push),
    admins: AdminRepository = Depends(get_admin_repository),
):
    require_permission(admin, AdminPermission.SEND_NOTIFICATIONS)
    result = send_push_notification(NotificationDraft(**body.model_dump())).unwrap()
    admins.log_activity(
        admin.uid,
        ActivityType.SEND_NOTIFICATION,
        f"Sent {body.type} to {body.user_id}",
        {"notification_id": result.notification.id, "reason": result.reason},
    )
    return PushResultResponse.model_validate(result)


@router.post("/topics/{topic}/send", response_model=TopicMessageResponse)
async def send_topic(
    topic: str,
    body: TopicMessageRequest,
    admin: AdminUser = Depends(get_current_admin),
    sender: PushSender = Depends(get_push_sender),
    admins: AdminRepository = Depends(get_admin_repository),
):
    require_permission(admin, AdminPermission.SEND_NOTIFICATIONS)
    message = TopicMessage(topic, body.title, body.body, body.data)
    message_id = SendTopicNotification(sender)(message).unwrap()
    admins.log_activity(admin.uid, ActivityType.SEND_NOTIFICATION, f"Sent topic message to {topic}")
    return TopicMessageResponse(topic=topic, message_id=message_id)


# ============================================================================
# SINGLE NOTIFICATION
# ============================================================================


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    user: UserProfile = Depends(get_current_user),
    repository: NotificationRepository = Depends(get_notification_repository),
):
    notification = MarkNotificationAsRead(repository)(NotificationRef(user.uid, notification_id)).unwrap()
    return NotificationResponse.model_validate(notification)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    user: UserProfile = Depends(get_current_user),
    repository: NotificationRepository = Depends(get_notification_repository),
):
    DeleteNotification(repository)(NotificationRef(user.uid, notification_id)).unwrap()
    return MessageResponse(message="Notification deleted")
