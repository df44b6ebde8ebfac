"""Models for user-facing notifications and their delivery preferences."""

import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ..quiet_hours import QuietHours

logger = logging.getLogger(__name__)


class NotificationType(Enum):
    """Visual tone of a notification. INFO stays in-app."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationCategory(Enum):
    """Business area a notification belongs to."""
    GENERAL = "general"
    QUOTE = "quote"
    POLICY = "policy"
    PAYMENT = "payment"
    PROMOTION = "promotion"
    SYSTEM = "system"


# Category -> preference flag that opts the user in to external delivery
CATEGORY_OPT_INS = {
    NotificationCategory.QUOTE: "quotes",
    NotificationCategory.POLICY: "policies",
    NotificationCategory.PAYMENT: "payments",
    NotificationCategory.PROMOTION: "promotions",
}


@dataclass
class NotificationData:
    """A single notification in the user's list."""
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    id: str = field(default_factory=lambda: f"notif-{uuid.uuid4().hex[:12]}")
    timestamp: datetime = field(default_factory=datetime.now)
    read: bool = False
    action_url: str | None = None
    action_text: str | None = None
    category: NotificationCategory | None = None

    def copy(self) -> "NotificationData":
        return dataclasses.replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
        }
        if self.action_url:
            data["action_url"] = self.action_url
        if self.action_text:
            data["action_text"] = self.action_text
        if self.category:
            data["category"] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationData":
        """Build from a stored record.

        Raises:
            KeyError, ValueError, TypeError: If the record is malformed
        """
        category = data.get("category")
        return cls(
            id=str(data["id"]),
            title=data["title"],
            message=data["message"],
            type=NotificationType(data.get("type", "info")),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            read=bool(data.get("read", False)),
            action_url=data.get("action_url"),
            action_text=data.get("action_text"),
            category=NotificationCategory(category) if category else None,
        )


@dataclass
class NotificationPreferences:
    """Channel switches and category opt-ins for notifications."""
    push: bool = True
    email: bool = True
    whatsapp: bool = True
    quotes: bool = True
    policies: bool = True
    payments: bool = True
    promotions: bool = False
    quiet_hours: QuietHours = field(default_factory=QuietHours)

    def allows_category(self, category: NotificationCategory | None) -> bool:
        flag = CATEGORY_OPT_INS.get(category) if category else None
        return flag is None or getattr(self, flag)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["quiet_hours"] = self.quiet_hours.to_dict()
        return data

    def merged(self, partial: dict[str, Any]) -> "NotificationPreferences":
        """Return a copy with a partial update applied."""
        updated = dataclasses.replace(
            self,
            quiet_hours=QuietHours(
                self.quiet_hours.enabled, self.quiet_hours.start, self.quiet_hours.end
            ),
        )
        for key, value in partial.items():
            if key == "quiet_hours":
                if isinstance(value, dict):
                    updated.quiet_hours = QuietHours.from_dict(value, default=updated.quiet_hours)
                else:
                    logger.warning(f"Ignoring invalid quiet_hours value: {value!r}")
            elif key in _BOOLEAN_FIELDS:
                if isinstance(value, bool):
                    setattr(updated, key, value)
                else:
                    logger.warning(f"Ignoring non-boolean value for {key}: {value!r}")
            else:
                logger.warning(f"Ignoring unknown preference: {key}")
        return updated

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationPreferences":
        return cls().merged(data)


_BOOLEAN_FIELDS = tuple(
    f.name for f in dataclasses.fields(NotificationPreferences) if f.name != "quiet_hours"
)
