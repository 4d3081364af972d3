from datetime import datetime, timedelta

import pytest

from carenow.domain.notifications.entities import (
    Notification,
    NotificationCategory,
    NotificationPreferences,
    NotificationPriority,
)
from carenow.domain.notifications.usecases import (
    CreateNotification,
    DeleteNotification,
    GetNotificationPreferences,
    GetUnreadCount,
    GetUserNotifications,
    MarkAllNotificationsAsRead,
    MarkNotificationAsRead,
    NotificationDispatcher,
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
from carenow.domain.notifications import usecases as notification_usecases
from carenow.domain.profiles.entities import UserProfile
from carenow.shared.failures import DataFailure

from .conftest import FakePushSender


def draft(user_id="client-1", **fields):
    values = dict(user_id=user_id, title="Hello", body="World", type="app_update")
    values.update(fields)
    return NotificationDraft(**values)


def notification(**fields):
    values = dict(id="n1", user_id="u1", title="t", body="b", type="app_update")
    values.update(fields)
    return Notification(**values)


# ============================================================================
# PREFERENCES
# ============================================================================


def test_default_preferences():
    prefs = NotificationPreferences(user_id="u1")
    assert not prefs.is_category_enabled(NotificationCategory.PROMOTION)
    assert prefs.is_category_enabled(NotificationCategory.BOOKING)
    assert all(prefs.is_priority_enabled(p) for p in NotificationPriority)
    assert not prefs.should_show_notification(notification(category=NotificationCategory.PROMOTION))


def test_quiet_hours_wrap_past_midnight():
    prefs = NotificationPreferences(user_id="u1").set_quiet_hours("22:00", "7:00")
    assert prefs.quiet_hours_end == "07:00"

    assert prefs.is_in_quiet_hours(datetime(2026, 1, 1, 23, 30))
    assert prefs.is_in_quiet_hours(datetime(2026, 1, 1, 6, 59))
    assert not prefs.is_in_quiet_hours(datetime(2026, 1, 1, 12, 0))


def test_quiet_hours_let_urgent_through():
    prefs = NotificationPreferences(user_id="u1").set_quiet_hours("12:00", "14:00")
    noon = datetime(2026, 1, 1, 13, 0)

    assert not prefs.should_show_notification(notification(), noon)
    assert prefs.should_show_notification(notification(priority=NotificationPriority.URGENT), noon)


def test_toggles_and_muting():
    prefs = NotificationPreferences(user_id="u1")
    prefs.toggle_category(NotificationCategory.BOOKING).toggle_priority(NotificationPriority.LOW)
    assert not prefs.is_category_enabled(NotificationCategory.BOOKING)
    assert not prefs.is_priority_enabled(NotificationPriority.LOW)

    prefs.mute_type("app_update").mute_type("app_update")
    assert prefs.muted_types == ["app_update"]
    assert not prefs.should_show_notification(notification())
    assert prefs.unmute_type("app_update").should_show_notification(notification())

    prefs.push_enabled = False
    assert not prefs.should_show_notification(notification())


def test_scheduled_notification_visibility():
    later = datetime(2026, 1, 10, 9, 0)
    scheduled = notification(scheduled_at=later, is_scheduled=True)

    assert not scheduled.should_show_now(later - timedelta(minutes=1))
    assert scheduled.should_show_now(later)
    assert not scheduled.is_expired(later + timedelta(days=6))
    assert scheduled.is_expired(later + timedelta(days=8))


def test_preferences_round_trip(preferences):
    get = GetNotificationPreferences(preferences)
    defaults = get("client-1").unwrap()
    assert defaults.push_enabled

    defaults.set_quiet_hours("22:00", "06:00")
    defaults.mute_type("discount")
    UpdateNotificationPreferences(preferences)(defaults).unwrap()

    stored = get("client-1").unwrap()
    assert stored.quiet_hours_enabled
    assert stored.quiet_hours_start == "22:00"
    assert stored.muted_types == ["discount"]


def test_preferences_validation(preferences):
    update = UpdateNotificationPreferences(preferences)
    bad_time = NotificationPreferences(user_id="u1", quiet_hours_start="25:00", quiet_hours_end="06:00")
    assert update(bad_time).failure.message == "Invalid quiet hours time: 25:00"

    half_open = NotificationPreferences(user_id="u1", quiet_hours_start="22:00", quiet_hours_enabled=True)
    assert update(half_open).failure.message == "Quiet hours need both a start and an end time"


# ============================================================================
# PUSH DELIVERY
# ============================================================================


def test_push_is_sent_with_notification_data(send_push, push_sender, client_profile):
    result = send_push(
        draft(data={"booking_id": "b1"}, category=NotificationCategory.BOOKING, priority=NotificationPriority.HIGH)
    ).unwrap()

    assert result.delivered
    assert result.reason == "sent"
    [message] = push_sender.sent
    assert message["token"] == "client-device"
    assert message["urgent"] is True
    assert message["data"]["booking_id"] == "b1"
    assert message["data"]["notification_id"] == result.notification.id
    assert message["data"]["category"] == "booking"


def test_push_without_token(send_push, profiles):
    profiles.create_profile(UserProfile(uid="u-2", email="u2@example.com", display_name="No Device"))
    result = send_push(draft("u-2")).unwrap()
    assert result.reason == "no_token"
    assert not result.delivered


def test_push_suppressed_by_preferences(send_push, notifications, preferences, push_sender, client_profile):
    preferences.save_preferences(NotificationPreferences(user_id="client-1", push_enabled=False))
    result = send_push(draft()).unwrap()

    assert result.reason == "suppressed_by_preferences"
    assert push_sender.sent == []
    # the inbox entry is kept either way
    assert GetUnreadCount(notifications)("client-1").unwrap() == 1


def test_push_quiet_hours_follow_local_clock(send_push, preferences, push_sender, client_profile, monkeypatch):
    preferences.save_preferences(
        NotificationPreferences(user_id="client-1").set_quiet_hours("22:00", "07:00")
    )
    monkeypatch.setattr(notification_usecases, "local_now", lambda: datetime(2026, 1, 1, 23, 30))
    assert send_push(draft()).unwrap().reason == "suppressed_by_preferences"

    monkeypatch.setattr(notification_usecases, "local_now", lambda: datetime(2026, 1, 1, 12, 0))
    assert send_push(draft()).unwrap().reason == "sent"
    assert len(push_sender.sent) == 1


def test_push_hides_preview_when_disabled(send_push, preferences, push_sender, client_profile):
    preferences.save_preferences(NotificationPreferences(user_id="client-1", show_preview=False))
    send_push(draft()).unwrap()
    assert push_sender.sent[0]["body"] == ""


def test_push_delivery_failure_is_reported(notifications, preferences, profiles, client_profile):
    send_push = SendPushNotification(notifications, preferences, profiles, FakePushSender(fail=True))
    result = send_push(draft()).unwrap()
    assert result.reason == "delivery_failed"
    assert not result.delivered


def test_scheduled_push_waits(send_push, push_sender, client_profile):
    result = send_push(draft(scheduled_at=datetime.utcnow() + timedelta(hours=2))).unwrap()
    assert result.reason == "scheduled"
    assert result.notification.is_scheduled
    assert push_sender.sent == []


def test_dispatcher_ignores_missing_recipient(dispatcher):
    assert dispatcher.notify("", "app_update", "t", "b") is None


def test_dispatcher_swallows_invalid_drafts(dispatcher, push_sender):
    assert dispatcher.notify("client-1", "app_update", " ", "b") is None
    assert push_sender.sent == []


# ============================================================================
# INBOX
# ============================================================================


def test_inbox_read_state(notifications, client_profile):
    create = CreateNotification(notifications)
    first = create(draft(title="First")).unwrap()
    create(draft(title="Second", category=NotificationCategory.PAYMENT)).unwrap()

    assert GetUnreadCount(notifications)("client-1").unwrap() == 2
    payments = GetUserNotifications(notifications)(
        NotificationQuery("client-1", category=NotificationCategory.PAYMENT)
    ).unwrap()
    assert [n.title for n in payments] == ["Second"]

    read = MarkNotificationAsRead(notifications)(NotificationRef("client-1", first.id)).unwrap()
    assert read.is_read
    assert read.read_at is not None
    unread = GetUserNotifications(notifications)(NotificationQuery("client-1", unread_only=True)).unwrap()
    assert [n.title for n in unread] == ["Second"]

    assert MarkAllNotificationsAsRead(notifications)("client-1").unwrap() == 1
    assert GetUnreadCount(notifications)("client-1").unwrap() == 0


def test_scheduled_notifications_stay_hidden(notifications):
    CreateNotification(notifications)(draft(scheduled_at=datetime.utcnow() + timedelta(days=1))).unwrap()
    assert GetUnreadCount(notifications)("client-1").unwrap() == 0
    assert GetUserNotifications(notifications)(NotificationQuery("client-1")).unwrap() == []


def test_notification_validation(notifications):
    assert CreateNotification(notifications)(draft(title=" ")).failure.message == "Title cannot be empty"
    query = GetUserNotifications(notifications)(NotificationQuery("client-1", limit=101))
    assert query.is_failure


def test_only_owner_can_touch_notification(notifications):
    created = CreateNotification(notifications)(draft()).unwrap()

    stranger = NotificationRef("someone-else", created.id)
    assert MarkNotificationAsRead(notifications)(stranger).failure.status_code == 403
    assert DeleteNotification(notifications)(stranger).failure.status_code == 403

    DeleteNotification(notifications)(NotificationRef("client-1", created.id)).unwrap()
    missing = MarkNotificationAsRead(notifications)(NotificationRef("client-1", created.id))
    assert isinstance(missing.failure, DataFailure)


# ============================================================================
# TOPICS
# ============================================================================


def test_topic_subscription(profiles, push_sender, client_profile):
    topics = SubscribeToTopic(profiles, push_sender)(TopicSubscription("client-1", "promotions")).unwrap()
    assert topics == ["promotions"]
    assert push_sender.subscriptions == [("client-device", "promotions")]
    assert profiles.get_profile("client-1").topics == ["promotions"]

    remaining = UnsubscribeFromTopic(profiles, push_sender)(TopicSubscription("client-1", "promotions")).unwrap()
    assert remaining == []
    assert push_sender.subscriptions == []


def test_subscribing_needs_a_device(profiles, push_sender):
    profiles.create_profile(UserProfile(uid="u-2", email="u2@example.com", display_name="No Device"))
    result = SubscribeToTopic(profiles, push_sender)(TopicSubscription("u-2", "promotions"))
    assert result.failure.message == "Register a device before subscribing to topics"


@pytest.mark.parametrize("topic", ["", "has space", "bad/topic"])
def test_invalid_topic_names(push_sender, topic):
    result = SendTopicNotification(push_sender)(TopicMessage(topic, "t", "b"))
    assert result.is_failure
    assert push_sender.topic_messages == []


def test_topic_message(push_sender):
    message_id = SendTopicNotification(push_sender)(TopicMessage("all_partners", "Update", "New version")).unwrap()
    assert message_id == "topic-msg-1"
    assert push_sender.topic_messages[0][0] == "all_partners"


def test_dispatcher_returns_push_result(send_push, client_profile):
    result = NotificationDispatcher(send_push).notify("client-1", "app_update", "Title", "Body")
    assert result.reason == "sent"
