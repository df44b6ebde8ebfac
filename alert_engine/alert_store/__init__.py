"""Alert storage module.

Provides the in-memory alert store and its models:
- Alert records with read/resolution tracking
- One template per alert type (title, message, call to action, severity)
- Derived metrics record
"""

from .models import (
    ALERT_TEMPLATES,
    Alert,
    AlertMetrics,
    AlertTemplate,
    AlertType,
    Severity,
    SubjectRef,
)
from .store import AlertStore

__all__ = [
    "ALERT_TEMPLATES",
    "Alert",
    "AlertMetrics",
    "AlertTemplate",
    "AlertType",
    "Severity",
    "SubjectRef",
    "AlertStore",
]
