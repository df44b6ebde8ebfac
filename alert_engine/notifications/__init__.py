"""User-facing notifications with push, WhatsApp and email copies."""

from .center import NotificationCenter
from .models import (
    NotificationCategory,
    NotificationData,
    NotificationPreferences,
    NotificationType,
)

__all__ = [
    "NotificationCenter",
    "NotificationCategory",
    "NotificationData",
    "NotificationPreferences",
    "NotificationType",
]
