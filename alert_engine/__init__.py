"""In-process alert and notification delivery engine."""

from .alert_store import Alert, AlertMetrics, AlertType, Severity, SubjectRef
from .notifications import NotificationCenter, NotificationData, NotificationType
from .service import AlertService
from .settings import AlertSettings
from .storage import MemoryKeyValueStore, SQLiteKeyValueStore

__all__ = [
    "Alert",
    "AlertMetrics",
    "AlertType",
    "Severity",
    "SubjectRef",
    "NotificationCenter",
    "NotificationData",
    "NotificationType",
    "AlertService",
    "AlertSettings",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
]
