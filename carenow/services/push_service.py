"""Firebase Cloud Messaging delivery"""

import logging
from typing import Optional

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from ..firebase import get_firebase_app
from ..shared.failures import NetworkFailure

logger = logging.getLogger(__name__)


def _stringify(data: Optional[dict]) -> dict[str, str]:
    # FCM data payloads only accept string values
    return {str(k): str(v) for k, v in (data or {}).items() if v is not None}


class PushSender:
    """Thin wrapper over firebase_admin.messaging"""

    def _android_config(self, urgent: bool) -> messaging.AndroidConfig:
        return messaging.AndroidConfig(priority="high" if urgent else "normal")

    def send_to_token(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[dict] = None,
        image_url: Optional[str] = None,
        urgent: bool = False,
    ) -> str:
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body, image=image_url),
            data=_stringify(data),
            token=token,
            android=self._android_config(urgent),
        )
        try:
            message_id = messaging.send(message, app=get_firebase_app())
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logger.error(f"❌ FCM send failed: {e}")
            raise NetworkFailure(f"Push delivery failed: {e}") from e
        logger.info(f"✅ Push sent: {message_id}")
        return message_id

    def send_to_topic(self, topic: str, title: str, body: str, data: Optional[dict] = None) -> str:
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=_stringify(data),
            topic=topic,
        )
        try:
            message_id = messaging.send(message, app=get_firebase_app())
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logger.error(f"❌ FCM topic send to {topic} failed: {e}")
            raise NetworkFailure(f"Topic delivery failed: {e}") from e
        logger.info(f"✅ Topic push sent to {topic}: {message_id}")
        return message_id

    def subscribe(self, token: str, topic: str) -> None:
        try:
            response = messaging.subscribe_to_topic([token], topic, app=get_firebase_app())
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logger.error(f"❌ FCM subscribe to {topic} failed: {e}")
            raise NetworkFailure(f"Topic subscription failed: {e}") from e
        if response.failure_count:
            raise NetworkFailure(f"Topic subscription failed: {response.errors[0].reason}")

    def unsubscribe(self, token: str, topic: str) -> None:
        try:
            response = messaging.unsubscribe_from_topic([token], topic, app=get_firebase_app())
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logger.error(f"❌ FCM unsubscribe from {topic} failed: {e}")
            raise NetworkFailure(f"Topic unsubscription failed: {e}") from e
        if response.failure_count:
            raise NetworkFailure(f"Topic unsubscription failed: {response.errors[0].reason}")
