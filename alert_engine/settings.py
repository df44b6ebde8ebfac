"""Alert delivery preferences, persisted as one JSON record."""

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from .alert_store.models import AlertType, Severity
from .quiet_hours import QuietHours
from .storage import KeyValueStore, load_json, save_json

logger = logging.getLogger(__name__)

SETTINGS_KEY = "alert_settings"

CHANNEL_FLAGS = (
    "enable_notifications",
    "enable_email_alerts",
    "enable_sms_alerts",
    "enable_push_alerts",
)


@dataclass
class AlertTypeSettings:
    """Per-type opt-out and severity override."""
    enabled: bool = True
    severity: Severity = Severity.MEDIUM
    threshold: float | None = None

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "severity": self.severity.value,
            "threshold": self.threshold,
        }


def _default_alert_types() -> dict[AlertType, AlertTypeSettings]:
    return {
        alert_type: AlertTypeSettings(
            enabled=True, severity=alert_type.template.default_severity
        )
        for alert_type in AlertType
    }


@dataclass
class AlertSettings:
    """Process-wide delivery configuration."""
    enable_notifications: bool = True
    enable_email_alerts: bool = True
    enable_sms_alerts: bool = False
    enable_push_alerts: bool = True
    quiet_hours: QuietHours = field(
        default_factory=lambda: QuietHours(enabled=True, start="20:00", end="08:00")
    )
    alert_types: dict[AlertType, AlertTypeSettings] = field(
        default_factory=_default_alert_types
    )

    def type_settings(self, alert_type: AlertType) -> AlertTypeSettings:
        """Settings for one type, falling back to the template defaults."""
        return self.alert_types.get(
            alert_type,
            AlertTypeSettings(enabled=True, severity=alert_type.template.default_severity),
        )

    def enabled_types(self) -> list[AlertType]:
        return [t for t in AlertType if self.type_settings(t).enabled]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "enable_notifications": self.enable_notifications,
            "enable_email_alerts": self.enable_email_alerts,
            "enable_sms_alerts": self.enable_sms_alerts,
            "enable_push_alerts": self.enable_push_alerts,
            "quiet_hours": self.quiet_hours.to_dict(),
            "alert_types": {
                t.value: s.to_dict() for t, s in self.alert_types.items()
            },
        }

    def merged(self, partial: dict[str, Any]) -> "AlertSettings":
        """Return a copy with a partial update applied.

        Channel flags replace; quiet_hours and alert_types merge one level
        deeper. Unknown keys and invalid values are logged and skipped.
        """
        updated = copy.deepcopy(self)

        for key, value in partial.items():
            if key in CHANNEL_FLAGS:
                if isinstance(value, bool):
                    setattr(updated, key, value)
                else:
                    logger.warning(f"Ignoring non-boolean value for {key}: {value!r}")
            elif key == "quiet_hours":
                if isinstance(value, QuietHours):
                    updated.quiet_hours = QuietHours(value.enabled, value.start, value.end)
                elif isinstance(value, dict):
                    updated.quiet_hours = QuietHours.from_dict(value, default=updated.quiet_hours)
                else:
                    logger.warning(f"Ignoring invalid quiet_hours value: {value!r}")
            elif key == "alert_types":
                if isinstance(value, dict):
                    _merge_alert_types(updated.alert_types, value)
                else:
                    logger.warning(f"Ignoring invalid alert_types value: {value!r}")
            else:
                logger.warning(f"Ignoring unknown settings key: {key}")

        return updated

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AlertSettings":
        """Build settings from a stored record, defaulting anything missing."""
        return cls().merged(data)


def _merge_alert_types(
    target: dict[AlertType, AlertTypeSettings],
    updates: dict,
) -> None:
    for raw_type, raw_settings in updates.items():
        alert_type = AlertType.parse(raw_type)
        if alert_type is None:
            logger.warning(f"Ignoring settings for unknown alert type: {raw_type}")
            continue

        current = target.get(alert_type) or AlertTypeSettings(
            severity=alert_type.template.default_severity
        )
        if isinstance(raw_settings, AlertTypeSettings):
            target[alert_type] = copy.copy(raw_settings)
            continue
        if not isinstance(raw_settings, dict):
            logger.warning(f"Ignoring invalid settings for {alert_type.value}: {raw_settings!r}")
            continue

        merged = AlertTypeSettings(current.enabled, current.severity, current.threshold)
        if "enabled" in raw_settings:
            if isinstance(raw_settings["enabled"], bool):
                merged.enabled = raw_settings["enabled"]
            else:
                logger.warning(
                    f"Ignoring non-boolean enabled {raw_settings['enabled']!r} "
                    f"for {alert_type.value}"
                )
        if "severity" in raw_settings:
            try:
                merged.severity = Severity(raw_settings["severity"])
            except ValueError:
                logger.warning(
                    f"Ignoring unknown severity {raw_settings['severity']!r} "
                    f"for {alert_type.value}"
                )
        if "threshold" in raw_settings:
            threshold = raw_settings["threshold"]
            if threshold is None or (
                isinstance(threshold, (int, float)) and not isinstance(threshold, bool)
            ):
                merged.threshold = threshold
            else:
                logger.warning(f"Ignoring invalid threshold {threshold!r} for {alert_type.value}")
        target[alert_type] = merged


class SettingsStore:
    """Loads settings once, applies partial updates and re-persists them."""

    def __init__(self, kv_store: KeyValueStore, key: str = SETTINGS_KEY):
        self._kv = kv_store
        self._key = key
        self._lock = threading.Lock()
        self._settings = self._load()

    def _load(self) -> AlertSettings:
        data = load_json(self._kv, self._key)
        if data is None:
            return AlertSettings()
        if not isinstance(data, dict):
            logger.warning(f"Stored {self._key} is not an object, using defaults")
            return AlertSettings()
        return AlertSettings.from_dict(data)

    def get(self) -> AlertSettings:
        """Return a copy of the current settings."""
        with self._lock:
            return copy.deepcopy(self._settings)

    def update(self, partial: dict[str, Any]) -> AlertSettings:
        """Merge a partial update, persist the full record, return a copy."""
        with self._lock:
            self._settings = self._settings.merged(partial)
            save_json(self._kv, self._key, self._settings.to_dict())
            logger.info(f"Alert settings updated: {sorted(partial)}")
            return copy.deepcopy(self._settings)
