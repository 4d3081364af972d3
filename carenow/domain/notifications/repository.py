"""Notification and preference repositories"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ...models import Notification as NotificationModel
from ...models import NotificationPreference
from ...shared.failures import DataFailure
from ...shared.repository import SqlAlchemyRepository
from .entities import (
    SCHEDULED_EXPIRY,
    Notification,
    NotificationCategory,
    NotificationPreferences,
    NotificationPriority,
)

logger = logging.getLogger(__name__)


class NotificationRepository(ABC):
    @abstractmethod
    def create_notification(self, notification: Notification) -> Notification: ...

    @abstractmethod
    def get_notification(self, notification_id: str) -> Notification: ...

    @abstractmethod
    def get_user_notifications(
        self,
        user_id: str,
        limit: int,
        unread_only: bool,
        category: Optional[NotificationCategory],
        now: datetime,
    ) -> list[Notification]: ...

    @abstractmethod
    def count_unread(self, user_id: str, now: datetime) -> int: ...

    @abstractmethod
    def mark_as_read(self, notification_id: str, read_at: datetime) -> Notification: ...

    @abstractmethod
    def mark_all_as_read(self, user_id: str, read_at: datetime) -> int: ...

    @abstractmethod
    def delete_notification(self, notification_id: str) -> None: ...


class PreferencesRepository(ABC):
    @abstractmethod
    def get_preferences(self, user_id: str) -> Optional[NotificationPreferences]: ...

    @abstractmethod
    def save_preferences(self, preferences: NotificationPreferences) -> NotificationPreferences: ...


def _to_entity(row: NotificationModel) -> Notification:
    return Notification(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        body=row.body,
        type=row.type,
        data=dict(row.data or {}),
        created_at=row.created_at,
        read_at=row.read_at,
        is_read=row.is_read,
        priority=NotificationPriority.from_value(row.priority),
        category=NotificationCategory.from_string(row.category),
        image_url=row.image_url,
        action_url=row.action_url,
        scheduled_at=row.scheduled_at,
        is_scheduled=row.is_scheduled,
        is_persistent=row.is_persistent,
    )


def _visible_at(now: datetime):
    """Unscheduled, or scheduled in the past but not yet expired"""
    return or_(
        NotificationModel.scheduled_at.is_(None),
        and_(
            NotificationModel.scheduled_at <= now,
            NotificationModel.scheduled_at >= now - SCHEDULED_EXPIRY,
        ),
    )


class SqlAlchemyNotificationRepository(SqlAlchemyRepository, NotificationRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def _get_row(self, notification_id: str) -> NotificationModel:
        with self.guard("loading notification"):
            row = (
                self.db.query(NotificationModel)
                .filter(NotificationModel.id == notification_id)
                .first()
            )
        if not row:
            raise DataFailure(f"Notification not found: {notification_id}")
        return row

    def create_notification(self, notification: Notification) -> Notification:
        with self.guard("creating notification"):
            row = NotificationModel(
                id=notification.id,
                user_id=notification.user_id,
                title=notification.title,
                body=notification.body,
                type=notification.type,
                data=dict(notification.data),
                is_read=notification.is_read,
                read_at=notification.read_at,
                priority=int(notification.priority),
                category=notification.category.value,
                image_url=notification.image_url,
                action_url=notification.action_url,
                scheduled_at=notification.scheduled_at,
                is_scheduled=notification.is_scheduled,
                is_persistent=notification.is_persistent,
                created_at=notification.created_at or datetime.utcnow(),
            )
            self.db.add(row)
            self.commit(row)
        return _to_entity(row)

    def get_notification(self, notification_id: str) -> Notification:
        return _to_entity(self._get_row(notification_id))

    def get_user_notifications(
        self,
        user_id: str,
        limit: int,
        unread_only: bool,
        category: Optional[NotificationCategory],
        now: datetime,
    ) -> list[Notification]:
        query = self.db.query(NotificationModel).filter(
            NotificationModel.user_id == user_id, _visible_at(now)
        )
        if unread_only:
            query = query.filter(NotificationModel.is_read.is_(False))
        if category is not None:
            query = query.filter(NotificationModel.category == category.value)
        with self.guard("listing notifications"):
            rows = query.order_by(NotificationModel.created_at.desc()).limit(limit).all()
        return [_to_entity(r) for r in rows]

    def count_unread(self, user_id: str, now: datetime) -> int:
        with self.guard("counting notifications"):
            return (
                self.db.query(NotificationModel)
                .filter(
                    NotificationModel.user_id == user_id,
                    NotificationModel.is_read.is_(False),
                    _visible_at(now),
                )
                .count()
            )

    def mark_as_read(self, notification_id: str, read_at: datetime) -> Notification:
        row = self._get_row(notification_id)
        with self.guard("marking notification read"):
            row.is_read = True
            row.read_at = read_at
            self.commit(row)
        return _to_entity(row)

    def mark_all_as_read(self, user_id: str, read_at: datetime) -> int:
        with self.guard("marking notifications read"):
            updated = (
                self.db.query(NotificationModel)
                .filter(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
                .update(
                    {NotificationModel.is_read: True, NotificationModel.read_at: read_at},
                    synchronize_session=False,
                )
            )
            self.db.commit()
        return updated

    def delete_notification(self, notification_id: str) -> None:
        row = self._get_row(notification_id)
        with self.guard("deleting notification"):
            self.db.delete(row)
            self.db.commit()


def _prefs_to_entity(row: NotificationPreference) -> NotificationPreferences:
    prefs = NotificationPreferences(user_id=row.user_id)
    # Stored maps only override keys they contain, so new categories default on
    prefs.category_preferences = {**prefs.category_preferences, **(row.category_preferences or {})}
    prefs.priority_preferences = {**prefs.priority_preferences, **(row.priority_preferences or {})}
    prefs.push_enabled = row.push_enabled
    prefs.email_enabled = row.email_enabled
    prefs.sms_enabled = row.sms_enabled
    prefs.sound_enabled = row.sound_enabled
    prefs.vibration_enabled = row.vibration_enabled
    prefs.show_on_lock_screen = row.show_on_lock_screen
    prefs.show_preview = row.show_preview
    prefs.quiet_hours_start = row.quiet_hours_start
    prefs.quiet_hours_end = row.quiet_hours_end
    prefs.quiet_hours_enabled = row.quiet_hours_enabled
    prefs.muted_types = list(row.muted_types or [])
    prefs.updated_at = row.updated_at
    return prefs


PREFERENCE_FIELDS = (
    "push_enabled",
    "email_enabled",
    "sms_enabled",
    "sound_enabled",
    "vibration_enabled",
    "show_on_lock_screen",
    "show_preview",
    "quiet_hours_start",
    "quiet_hours_end",
    "quiet_hours_enabled",
)


class SqlAlchemyPreferencesRepository(SqlAlchemyRepository, PreferencesRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def get_preferences(self, user_id: str) -> Optional[NotificationPreferences]:
        with self.guard("loading notification preferences"):
            row = (
                self.db.query(NotificationPreference)
                .filter(NotificationPreference.user_id == user_id)
                .first()
            )
        return _prefs_to_entity(row) if row else None

    def save_preferences(self, preferences: NotificationPreferences) -> NotificationPreferences:
        with self.guard("saving notification preferences"):
            row = (
                self.db.query(NotificationPreference)
                .filter(NotificationPreference.user_id == preferences.user_id)
                .first()
            )
            if row is None:
                row = NotificationPreference(user_id=preferences.user_id)
                self.db.add(row)
            for name in PREFERENCE_FIELDS:
                setattr(row, name, getattr(preferences, name))
            row.category_preferences = dict(preferences.category_preferences)
            row.priority_preferences = dict(preferences.priority_preferences)
            row.muted_types = list(preferences.muted_types)
            row.updated_at = datetime.utcnow()
            self.commit(row)
        return _prefs_to_entity(row)
