"""
Notification sender seam.

Delivery (email, push, in-app) belongs to another service; this module only
defines the capability the assignment and unlock services call, plus a
default sender that writes to the log.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from lms_backend.settings import settings

logger = logging.getLogger(__name__)


class NotificationSender(ABC):

    @abstractmethod
    def notify(self, recipient_id: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        pass


class LoggingNotificationSender(NotificationSender):

    def notify(self, recipient_id: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        logger.info(f"Notify {recipient_id}: {message} {data or {}}")


class NullNotificationSender(NotificationSender):

    def notify(self, recipient_id: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        pass


def default_sender() -> NotificationSender:
    if settings.ENABLE_NOTIFICATIONS:
        return LoggingNotificationSender()
    return NullNotificationSender()


def send_quietly(sender: Optional[NotificationSender], recipient_id: Optional[str], message: str, data: Optional[Dict[str, Any]] = None) -> bool:
    """Fire-and-forget delivery; a failing sender never fails the caller."""
    if sender is None or recipient_id is None:
        return False
    try:
        sender.notify(recipient_id, message, data or {})
        return True
    except Exception as e:
        logger.error(f"Failed to notify {recipient_id}: {e}")
        return False
