from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, IntEnum
from typing import Optional

from ...shared.clock import local_now
from ...shared.validators import normalize_time

# Scheduled notifications are hidden this long after their scheduled time
SCHEDULED_EXPIRY = timedelta(days=7)


class NotificationPriority(IntEnum):
    LOW = 1
    NORMAL = 2
    HIGH = 3
    URGENT = 4

    @classmethod
    def from_value(cls, value) -> "NotificationPriority":
        try:
            if isinstance(value, str) and not value.isdigit():
                return cls[value.upper()]
            return cls(int(value))
        except (KeyError, ValueError, TypeError):
            return cls.NORMAL


class NotificationCategory(str, Enum):
    BOOKING = "booking"
    JOB = "job"
    PAYMENT = "payment"
    SYSTEM = "system"
    PROMOTION = "promotion"
    REMINDER = "reminder"
    SOCIAL = "social"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "NotificationCategory":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.SYSTEM


class NotificationTypes:
    BOOKING_CREATED = "booking_created"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_STARTED = "booking_started"
    BOOKING_COMPLETED = "booking_completed"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_REMINDER = "booking_reminder"

    NEW_JOB_AVAILABLE = "new_job_available"
    JOB_ACCEPTED = "job_accepted"
    JOB_STARTED = "job_started"
    JOB_COMPLETED = "job_completed"
    JOB_CANCELLED = "job_cancelled"

    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"
    EARNINGS_UPDATE = "earnings_update"

    SYSTEM_MAINTENANCE = "system_maintenance"
    APP_UPDATE = "app_update"
    ACCOUNT_UPDATE = "account_update"

    RATING_RECEIVED = "rating_received"
    REVIEW_RECEIVED = "review_received"

    SPECIAL_OFFER = "special_offer"
    DISCOUNT = "discount"

    ALL = (
        BOOKING_CREATED,
        BOOKING_CONFIRMED,
        BOOKING_STARTED,
        BOOKING_COMPLETED,
        BOOKING_CANCELLED,
        BOOKING_REMINDER,
        NEW_JOB_AVAILABLE,
        JOB_ACCEPTED,
        JOB_STARTED,
        JOB_COMPLETED,
        JOB_CANCELLED,
        PAYMENT_RECEIVED,
        PAYMENT_FAILED,
        EARNINGS_UPDATE,
        SYSTEM_MAINTENANCE,
        APP_UPDATE,
        ACCOUNT_UPDATE,
        RATING_RECEIVED,
        REVIEW_RECEIVED,
        SPECIAL_OFFER,
        DISCOUNT,
    )


@dataclass
class Notification:
    id: str
    user_id: str
    title: str
    body: str
    type: str
    data: dict = field(default_factory=dict)
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    is_read: bool = False
    priority: NotificationPriority = NotificationPriority.NORMAL
    category: NotificationCategory = NotificationCategory.SYSTEM
    image_url: Optional[str] = None
    action_url: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    is_scheduled: bool = False
    is_persistent: bool = False

    def mark_as_read(self, now: Optional[datetime] = None) -> "Notification":
        self.is_read = True
        self.read_at = now or datetime.utcnow()
        return self

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if not self.is_scheduled or self.scheduled_at is None:
            return False
        now = now or datetime.utcnow()
        return now > self.scheduled_at + SCHEDULED_EXPIRY

    def should_show_now(self, now: Optional[datetime] = None) -> bool:
        if not self.is_scheduled or self.scheduled_at is None:
            return True
        now = now or datetime.utcnow()
        return now >= self.scheduled_at

    @property
    def is_urgent(self) -> bool:
        return self.priority == NotificationPriority.URGENT


def default_category_preferences() -> dict[str, bool]:
    return {c.value: c != NotificationCategory.PROMOTION for c in NotificationCategory}


def default_priority_preferences() -> dict[str, bool]:
    return {str(p.value): True for p in NotificationPriority}


@dataclass
class NotificationPreferences:
    user_id: str
    push_enabled: bool = True
    email_enabled: bool = True
    sms_enabled: bool = False
    category_preferences: dict[str, bool] = field(default_factory=default_category_preferences)
    priority_preferences: dict[str, bool] = field(default_factory=default_priority_preferences)
    sound_enabled: bool = True
    vibration_enabled: bool = True
    show_on_lock_screen: bool = True
    show_preview: bool = True
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    quiet_hours_enabled: bool = False
    muted_types: list[str] = field(default_factory=list)
    updated_at: Optional[datetime] = None

    def is_category_enabled(self, category: NotificationCategory) -> bool:
        return self.category_preferences.get(category.value, True)

    def is_priority_enabled(self, priority: NotificationPriority) -> bool:
        return self.priority_preferences.get(str(int(priority)), True)

    def is_type_muted(self, notification_type: str) -> bool:
        return notification_type in self.muted_types

    def is_in_quiet_hours(self, now: Optional[datetime] = None) -> bool:
        if not self.quiet_hours_enabled or not self.quiet_hours_start or not self.quiet_hours_end:
            return False
        now = now or local_now()
        current = now.strftime("%H:%M")
        start = normalize_time(self.quiet_hours_start)
        end = normalize_time(self.quiet_hours_end)
        if start > end:
            # Window wraps past midnight, e.g. 22:00-07:00
            return current >= start or current <= end
        return start <= current <= end

    def should_show_notification(
        self, notification: Notification, now: Optional[datetime] = None
    ) -> bool:
        if not self.push_enabled:
            return False
        if not self.is_category_enabled(notification.category):
            return False
        if not self.is_priority_enabled(notification.priority):
            return False
        if self.is_type_muted(notification.type):
            return False
        if self.is_in_quiet_hours(now):
            return notification.is_urgent
        return True

    def toggle_category(self, category: NotificationCategory) -> "NotificationPreferences":
        prefs = dict(self.category_preferences)
        prefs[category.value] = not self.is_category_enabled(category)
        self.category_preferences = prefs
        return self

    def toggle_priority(self, priority: NotificationPriority) -> "NotificationPreferences":
        prefs = dict(self.priority_preferences)
        prefs[str(int(priority))] = not self.is_priority_enabled(priority)
        self.priority_preferences = prefs
        return self

    def mute_type(self, notification_type: str) -> "NotificationPreferences":
        if notification_type not in self.muted_types:
            self.muted_types = [*self.muted_types, notification_type]
        return self

    def unmute_type(self, notification_type: str) -> "NotificationPreferences":
        self.muted_types = [t for t in self.muted_types if t != notification_type]
        return self

    def set_quiet_hours(
        self, start: Optional[str], end: Optional[str], enabled: bool = True
    ) -> "NotificationPreferences":
        self.quiet_hours_start = normalize_time(start) if start else None
        self.quiet_hours_end = normalize_time(end) if end else None
        self.quiet_hours_enabled = enabled
        return self


@dataclass
class PushResult:
    notification: Notification
    delivered: bool
    reason: str  # sent, no_token, suppressed_by_preferences, delivery_failed
