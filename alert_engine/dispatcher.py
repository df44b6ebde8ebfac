"""Delivery dispatcher for new alerts.

Decides which channels receive an alert and runs each send as an
independent fire-and-forget job:
- PUSH: push alerts enabled
- EMAIL: email alerts enabled and severity above LOW
- SMS: SMS alerts enabled and severity above LOW (WhatsApp via Twilio)

Nothing goes out while notifications are globally disabled, the alert type
is disabled, or quiet hours are in effect.
"""

import logging
import threading
from collections import deque
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from .alert_store.models import Alert, Severity
from .channels.email import EmailMessage
from .channels.factory import DeliveryChannels
from .channels.messaging import format_message
from .config import config
from .quiet_hours import is_sending_allowed
from .settings import AlertSettings
from .storage import KeyValueStore, append_bounded

logger = logging.getLogger(__name__)

SMS_LOG_KEY = "alert_sms_logs"
SMS_LOG_LIMIT = 10
HISTORY_LIMIT = 100


class DeliveryChannel(Enum):
    """Outbound delivery paths."""
    PUSH = "push"
    EMAIL = "email"
    SMS = "sms"


@dataclass
class DeliveryResult:
    """Outcome of one channel send."""
    channel: DeliveryChannel
    alert_id: str
    success: bool
    error: str | None = None
    completed_at: datetime = field(default_factory=datetime.now)


def plan_delivery(alert: Alert, settings: AlertSettings, now: datetime) -> list[DeliveryChannel]:
    """Decide which channels an alert goes to. Pure function of its inputs."""
    if not settings.enable_notifications:
        logger.debug(f"Notifications disabled, not delivering {alert.id}")
        return []
    if not settings.type_settings(alert.alert_type).enabled:
        logger.debug(f"Type {alert.alert_type.value} disabled, not delivering {alert.id}")
        return []
    if not is_sending_allowed(now, settings.quiet_hours):
        logger.debug(f"Quiet hours, not delivering {alert.id}")
        return []

    channels = []
    if settings.enable_push_alerts:
        channels.append(DeliveryChannel.PUSH)

    # LOW severity is informational and stays in-app
    if alert.severity != Severity.LOW:
        if settings.enable_email_alerts:
            channels.append(DeliveryChannel.EMAIL)
        if settings.enable_sms_alerts:
            channels.append(DeliveryChannel.SMS)

    return channels


class DeliveryDispatcher:
    """Fan new alerts out to the configured channels."""

    def __init__(
        self,
        channels: DeliveryChannels,
        kv_store: KeyValueStore,
        clock: Callable[[], datetime] = datetime.now,
        executor: Executor | None = None,
        max_workers: int | None = None,
        management_url: str | None = None,
        icon: str | None = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            channels: Push, email and messaging channels
            kv_store: Storage for the SMS/WhatsApp audit trail
            clock: Source of "now" for quiet hours
            executor: Where sends run; a private thread pool by default
            max_workers: Pool size when creating the default executor
            management_url: Link appended to SMS/WhatsApp messages
            icon: Icon passed to push notifications
        """
        self.channels = channels
        self.kv_store = kv_store
        self.clock = clock
        self.management_url = management_url or config.MANAGEMENT_URL
        self.icon = icon or config.NOTIFICATION_ICON

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers or config.DELIVERY_WORKERS,
            thread_name_prefix="alert-delivery",
        )
        self._history: deque[DeliveryResult] = deque(maxlen=HISTORY_LIMIT)
        self._history_lock = threading.Lock()

        self._senders: dict[DeliveryChannel, Callable[[Alert], bool]] = {
            DeliveryChannel.PUSH: self._send_push,
            DeliveryChannel.EMAIL: self._send_email,
            DeliveryChannel.SMS: self._send_sms,
        }

    def dispatch(self, alert: Alert, settings: AlertSettings) -> list[DeliveryChannel]:
        """Queue sends for an alert. Never raises and never waits for a send.

        Returns:
            The channels that were queued
        """
        try:
            planned = plan_delivery(alert, settings, self.clock())
        except Exception as e:
            logger.error(f"Error planning delivery for {alert.id}: {e}")
            return []

        queued = []
        for channel in planned:
            try:
                self._executor.submit(self._run, channel, alert)
                queued.append(channel)
            except RuntimeError as e:
                # Executor already shut down
                logger.warning(f"Cannot queue {channel.value} for {alert.id}: {e}")
        return queued

    def _run(self, channel: DeliveryChannel, alert: Alert) -> DeliveryResult:
        try:
            success = bool(self._senders[channel](alert))
            result = DeliveryResult(channel=channel, alert_id=alert.id, success=success)
            if success:
                logger.debug(f"Alert {alert.id} sent via {channel.value}")
            else:
                logger.warning(f"Alert {alert.id} not delivered via {channel.value}")
        except Exception as e:
            logger.error(f"Error sending {alert.id} via {channel.value}: {e}")
            result = DeliveryResult(
                channel=channel, alert_id=alert.id, success=False, error=str(e)
            )

        with self._history_lock:
            self._history.append(result)
        return result

    def _send_push(self, alert: Alert) -> bool:
        notifier = self.channels.push
        if not notifier.is_supported():
            logger.debug("Push platform not supported")
            return False
        handle = notifier.show(
            title=alert.title,
            body=alert.message,
            tag=alert.id,
            icon=self.icon,
            action_url=alert.action_url,
            action_text=alert.action_text,
        )
        return handle.delivered

    def _send_email(self, alert: Alert) -> bool:
        body = alert.message
        if alert.action_url:
            body += f"\n\n{alert.action_text or 'Open'}: {alert.action_url}"
        message = EmailMessage(
            subject=f"[{alert.severity.value.upper()}] {alert.title}",
            text_body=body,
            message_type=alert.severity.value,
        )
        return self.channels.email.send(message)

    def _send_sms(self, alert: Alert) -> bool:
        text = format_message(alert.title, alert.message, self.management_url)
        success = self.channels.messaging.send(text)
        append_bounded(
            self.kv_store,
            SMS_LOG_KEY,
            {
                "timestamp": self.clock().isoformat(),
                "alert_id": alert.id,
                "message": text,
                "type": alert.severity.value,
                "delivered": success,
            },
            limit=SMS_LOG_LIMIT,
        )
        return success

    def recent_deliveries(self) -> list[DeliveryResult]:
        """Most recent delivery outcomes, oldest first."""
        with self._history_lock:
            return list(self._history)

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting sends. In-flight sends are not cancelled."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
