"""Push notification platforms.

A platform shows a short notification (title, body, icon, dedupe tag) and
returns a handle the caller can attach a click handler to. Two platforms are
provided:

- ConsoleNotifier: logs notifications, for development and tests
- TeamsNotifier: posts an Adaptive Card to a Teams Workflows webhook

Setup for Teams:
1. In Teams channel, click ... > Workflows
2. Search "Post to a channel when a webhook request is received"
3. Select team/channel and create
4. Copy the webhook URL into TEAMS_WEBHOOK_URL
"""

import json
import logging
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PermissionState(Enum):
    """Notification permission as reported by the platform."""
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass
class NotificationHandle:
    """A notification shown by a platform."""
    title: str
    body: str
    tag: str
    icon: str | None = None
    delivered: bool = True
    on_click: Optional[Callable[["NotificationHandle"], None]] = None
    closed: bool = False
    shown_at: datetime = field(default_factory=datetime.now)

    def click(self) -> None:
        """Simulate the user clicking the notification."""
        if self.on_click is None:
            return
        try:
            self.on_click(self)
        except Exception as e:
            logger.error(f"Click handler for notification {self.tag} failed: {e}")

    def close(self) -> None:
        self.closed = True


class PlatformNotifier(ABC):
    """Host platform notification API."""

    permission: PermissionState = PermissionState.DEFAULT

    @abstractmethod
    def is_supported(self) -> bool:
        """Whether the platform can show notifications at all."""

    @abstractmethod
    def request_permission(self) -> PermissionState:
        """Ask the user for permission. May raise on platform errors."""

    @abstractmethod
    def show(
        self,
        title: str,
        body: str,
        tag: str,
        icon: str | None = None,
        action_url: str | None = None,
        action_text: str | None = None,
    ) -> NotificationHandle:
        """Show a notification and return its handle.

        Args:
            title: Notification title
            body: Notification text
            tag: Dedupe tag (alert or notification id)
            icon: Optional icon URL
            action_url: Where the notification leads, if the platform can link
            action_text: Label for that link
        """


class ConsoleNotifier(PlatformNotifier):
    """Logs notifications instead of showing them - useful for development."""

    def __init__(self, permission: PermissionState = PermissionState.GRANTED,
                 supported: bool = True):
        self.permission = permission
        self.supported = supported
        self.shown: list[NotificationHandle] = []

    def is_supported(self) -> bool:
        return self.supported

    def request_permission(self) -> PermissionState:
        if self.permission == PermissionState.DEFAULT:
            self.permission = PermissionState.GRANTED
        return self.permission

    def show(self, title: str, body: str, tag: str, icon: str | None = None,
             action_url: str | None = None, action_text: str | None = None) -> NotificationHandle:
        handle = NotificationHandle(title=title, body=body, tag=tag, icon=icon)
        self.shown.append(handle)
        logger.info(f"Push notification [{tag}]: {title} - {body}")
        return handle



CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"
CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
WEBHOOK_TIMEOUT = 30


def _text_block(text: str, **style) -> dict:
    return {"type": "TextBlock", "text": text, "wrap": True, **style}


class TeamsNotifier(PlatformNotifier):
    """Deliver push notifications to a Microsoft Teams channel."""

    def __init__(self, webhook_url: str, base_url: str = ""):
        """
        Initialize Teams notifier.

        Args:
            webhook_url: Workflows webhook URL for the target channel
            base_url: Prefix for relative action URLs in card buttons
        """
        self.webhook_url = webhook_url
        self.base_url = base_url.rstrip("/")
        self.permission = (
            PermissionState.GRANTED if webhook_url else PermissionState.DENIED
        )

    def is_supported(self) -> bool:
        return bool(self.webhook_url)

    def request_permission(self) -> PermissionState:
        # A configured webhook is the permission
        return self.permission

    def _absolute(self, url: str) -> str:
        if url.startswith("/") and self.base_url:
            return self.base_url + url
        return url

    def build_card(
        self,
        title: str,
        body: str,
        tag: str,
        action_url: str | None = None,
        action_text: str | None = None,
    ) -> dict:
        """Wrap a one-notification Adaptive Card in a Workflows message."""
        sent = datetime.now().strftime("%d/%m/%Y %H:%M")
        card = {
            "type": "AdaptiveCard",
            "$schema": CARD_SCHEMA,
            "version": "1.4",
            "body": [
                _text_block(title, weight="Bolder", size="Large"),
                _text_block(body),
                _text_block(f"{tag} / {sent}", size="Small", isSubtle=True),
            ],
        }
        if action_url:
            card["actions"] = [{
                "type": "Action.OpenUrl",
                "title": action_text or "Ouvrir",
                "url": self._absolute(action_url),
            }]

        attachment = {"contentType": CARD_CONTENT_TYPE, "contentUrl": None, "content": card}
        return {"type": "message", "attachments": [attachment]}

    def _post(self, payload: dict) -> int:
        """POST the payload, returning the HTTP status (0 when unreachable)."""
        request = urllib.request.Request(
            self.webhook_url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=WEBHOOK_TIMEOUT) as response:
                return response.status
        except urllib.error.HTTPError as e:
            logger.error(f"Teams webhook rejected card: {e.code} {e.reason}")
            return e.code
        except urllib.error.URLError as e:
            logger.error(f"Teams webhook unreachable: {e.reason}")
            return 0

    def show(
        self,
        title: str,
        body: str,
        tag: str,
        icon: str | None = None,
        action_url: str | None = None,
        action_text: str | None = None,
    ) -> NotificationHandle:
        handle = NotificationHandle(title=title, body=body, tag=tag, icon=icon)
        if not self.webhook_url:
            logger.warning("Teams: no webhook URL configured")
            handle.delivered = False
            return handle

        status = self._post(self.build_card(title, body, tag, action_url, action_text))
        handle.delivered = status in (200, 202)
        if handle.delivered:
            logger.info(f"Teams notification sent for {tag}")
        return handle
