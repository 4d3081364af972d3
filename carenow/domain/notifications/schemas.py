"""Notification schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .entities import NotificationCategory, NotificationPriority


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    title: str
    body: str
    type: str
    data: dict
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    is_read: bool
    priority: NotificationPriority
    category: NotificationCategory
    image_url: Optional[str] = None
    action_url: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    is_scheduled: bool
    is_persistent: bool

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    unread: int


class MarkAllResponse(BaseModel):
    updated: int


class PreferencesBody(BaseModel):
    push_enabled: bool = True
    email_enabled: bool = True
    sms_enabled: bool = False
    category_preferences: Optional[dict[str, bool]] = None
    priority_preferences: Optional[dict[str, bool]] = None
    sound_enabled: bool = True
    vibration_enabled: bool = True
    show_on_lock_screen: bool = True
    show_preview: bool = True
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    quiet_hours_enabled: bool = False
    muted_types: list[str] = []


class PreferencesResponse(PreferencesBody):
    user_id: str
    category_preferences: dict[str, bool]
    priority_preferences: dict[str, bool]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PushRequest(BaseModel):
    user_id: str
    title: str
    body: str
    type: str
    data: dict = {}
    priority: NotificationPriority = NotificationPriority.NORMAL
    category: NotificationCategory = NotificationCategory.SYSTEM
    image_url: Optional[str] = None
    action_url: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    is_persistent: bool = False


class PushResultResponse(BaseModel):
    notification: NotificationResponse
    delivered: bool
    reason: str

    class Config:
        from_attributes = True


class TopicMessageRequest(BaseModel):
    title: str
    body: str
    data: dict = {}


class TopicMessageResponse(BaseModel):
    topic: str
    message_id: str


class TopicsResponse(BaseModel):
    topics: list[str]
