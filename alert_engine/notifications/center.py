"""Notification center: the user's persisted notification list.

Showing a notification stores it first, then optionally:
- pops a platform notification (platform supported, permission granted,
  push enabled, outside quiet hours)
- sends WhatsApp and email copies for anything other than INFO

External copies respect the category opt-ins in the user's preferences.
"""

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Optional

from ..broadcaster import Broadcaster
from ..channels.email import EmailMessage
from ..channels.factory import DeliveryChannels
from ..channels.messaging import format_message
from ..channels.push import NotificationHandle, PermissionState
from ..config import config
from ..quiet_hours import is_sending_allowed
from ..storage import KeyValueStore, append_bounded, load_json, save_json
from .models import NotificationData, NotificationPreferences, NotificationType

logger = logging.getLogger(__name__)

NOTIFICATIONS_KEY = "notifications"
PREFERENCES_KEY = "notification_preferences"
WHATSAPP_LOG_KEY = "whatsapp_logs"
WHATSAPP_LOG_LIMIT = 10


class NotificationCenter:
    """Persisted, observable list of user notifications."""

    def __init__(
        self,
        kv_store: KeyValueStore,
        channels: DeliveryChannels,
        clock: Callable[[], datetime] = datetime.now,
        executor: Optional[Executor] = None,
        on_navigate: Optional[Callable[[str | None], None]] = None,
        management_url: str | None = None,
        icon: str | None = None,
    ):
        """
        Initialize the notification center.

        Args:
            kv_store: Storage for the list, preferences and WhatsApp log
            channels: Push, email and messaging channels
            clock: Source of "now" for quiet hours and log entries
            executor: Where external sends run; a private thread pool by default
            on_navigate: Called when a platform notification is clicked, with
                         the notification's action URL (None to just focus)
            management_url: Link appended to WhatsApp messages
            icon: Icon passed to platform notifications
        """
        self.kv_store = kv_store
        self.channels = channels
        self.clock = clock
        self.on_navigate = on_navigate
        self.management_url = management_url or config.MANAGEMENT_URL
        self.icon = icon or config.NOTIFICATION_ICON

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="notification-delivery"
        )
        self._lock = threading.RLock()
        self._notifications = self._load_notifications()
        self._preferences = self._load_preferences()
        self._broadcaster: Broadcaster[NotificationData] = Broadcaster(self._snapshot)

    def _load_notifications(self) -> list[NotificationData]:
        data = load_json(self.kv_store, NOTIFICATIONS_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning(f"Stored {NOTIFICATIONS_KEY} is not a list, starting empty")
            return []

        notifications = []
        for record in data:
            try:
                notifications.append(NotificationData.from_dict(record))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping malformed stored notification: {e}")
        return notifications

    def _load_preferences(self) -> NotificationPreferences:
        data = load_json(self.kv_store, PREFERENCES_KEY)
        if not isinstance(data, dict):
            if data is not None:
                logger.warning(f"Stored {PREFERENCES_KEY} is not an object, using defaults")
            return NotificationPreferences()
        return NotificationPreferences.from_dict(data)

    def _snapshot(self) -> list[NotificationData]:
        with self._lock:
            return [n.copy() for n in self._notifications]

    def _persist(self) -> None:
        save_json(
            self.kv_store,
            NOTIFICATIONS_KEY,
            [n.to_dict() for n in self._notifications],
        )

    def _changed(self) -> None:
        """Re-persist and broadcast. Caller holds the lock."""
        self._persist()
        self._broadcaster.publish()

    # Queries

    @property
    def notifications(self) -> list[NotificationData]:
        return self._snapshot()

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._notifications if not n.read)

    @property
    def preferences(self) -> NotificationPreferences:
        with self._lock:
            return NotificationPreferences.from_dict(self._preferences.to_dict())

    @property
    def is_supported(self) -> bool:
        return self.channels.push.is_supported()

    @property
    def permission(self) -> PermissionState:
        return self.channels.push.permission

    def subscribe(self, observer: Callable[[list[NotificationData]], None]) -> Callable[[], None]:
        """Receive the notification list now and after every change."""
        with self._lock:
            return self._broadcaster.subscribe(observer)

    # Mutations

    def show_notification(self, data: NotificationData) -> NotificationData:
        """Add a notification to the top of the list and deliver it."""
        notification = data.copy()
        notification.read = False

        with self._lock:
            self._notifications.insert(0, notification)
            self._changed()
            preferences = self._preferences

        if not preferences.allows_category(notification.category):
            logger.debug(
                f"Category {notification.category.value} opted out, "
                f"keeping {notification.id} in-app"
            )
            return notification.copy()

        if preferences.push and self.is_supported and self.permission == PermissionState.GRANTED:
            if is_sending_allowed(self.clock(), preferences.quiet_hours):
                self._submit(self._show_platform, notification)
            else:
                logger.debug(f"Quiet hours, no platform notification for {notification.id}")

        if notification.type != NotificationType.INFO:
            if preferences.whatsapp:
                self._submit(self._send_whatsapp, notification)
            if preferences.email:
                self._submit(self._send_email, notification)

        return notification.copy()

    def mark_as_read(self, notification_id: str) -> bool:
        with self._lock:
            for notification in self._notifications:
                if notification.id == notification_id:
                    notification.read = True
                    self._changed()
                    return True
        return False

    def mark_all_as_read(self) -> None:
        with self._lock:
            for notification in self._notifications:
                notification.read = True
            self._changed()

    def delete_notification(self, notification_id: str) -> bool:
        with self._lock:
            remaining = [n for n in self._notifications if n.id != notification_id]
            if len(remaining) == len(self._notifications):
                return False
            self._notifications = remaining
            self._changed()
            return True

    def update_preferences(self, partial: dict[str, Any]) -> NotificationPreferences:
        """Merge a partial preferences update and persist it."""
        with self._lock:
            self._preferences = self._preferences.merged(partial)
            save_json(self.kv_store, PREFERENCES_KEY, self._preferences.to_dict())
            return self.preferences

    def request_permission(self) -> bool:
        """Ask the platform for notification permission.

        Returns:
            True if permission is granted
        """
        notifier = self.channels.push
        if not notifier.is_supported():
            return False
        try:
            result = notifier.request_permission()
        except Exception as e:
            logger.error(f"Notification permission request failed: {e}")
            return False
        return result == PermissionState.GRANTED

    def shutdown(self, wait: bool = False) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    # Delivery

    def _show_platform(self, notification: NotificationData) -> NotificationHandle | None:
        try:
            handle = self.channels.push.show(
                title=notification.title,
                body=notification.message,
                tag=notification.id,
                icon=self.icon,
                action_url=notification.action_url,
                action_text=notification.action_text,
            )
        except Exception as e:
            logger.error(f"Platform notification failed for {notification.id}: {e}")
            return None

        action_url = notification.action_url

        def on_click(clicked: NotificationHandle) -> None:
            if self.on_navigate:
                self.on_navigate(action_url)
            clicked.close()

        handle.on_click = on_click
        return handle

    def _submit(self, sender: Callable[[NotificationData], Any], notification: NotificationData) -> None:
        try:
            self._executor.submit(self._run, sender, notification)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning(f"Cannot queue delivery for {notification.id}: {e}")

    def _run(self, sender: Callable[[NotificationData], Any], notification: NotificationData) -> bool:
        try:
            return bool(sender(notification))
        except Exception as e:
            logger.error(f"Error delivering notification {notification.id}: {e}")
            return False

    def _send_whatsapp(self, notification: NotificationData) -> bool:
        text = format_message(notification.title, notification.message, self.management_url)
        success = self.channels.messaging.send(text)
        append_bounded(
            self.kv_store,
            WHATSAPP_LOG_KEY,
            {
                "timestamp": self.clock().isoformat(),
                "message": text,
                "type": notification.type.value,
            },
            limit=WHATSAPP_LOG_LIMIT,
        )
        return success

    def _send_email(self, notification: NotificationData) -> bool:
        message = EmailMessage(
            subject=notification.title,
            text_body=notification.message,
            message_type=notification.type.value,
        )
        return self.channels.email.send(message)
