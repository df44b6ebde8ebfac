"""In-memory alert storage, the single source of truth for alert state."""

import logging
import threading
import uuid
from datetime import datetime
from typing import Callable

from .models import Alert, Severity

logger = logging.getLogger(__name__)


class AlertStore:
    """Ordered in-memory collection of alerts.

    Every mutation runs under one re-entrant lock, which callers can also
    hold (via `lock`) to make a mutation and its broadcast a single step.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._alerts: list[Alert] = []
        self._index: dict[str, Alert] = {}
        self._clock = clock
        self.lock = threading.RLock()

    def generate_id(self) -> str:
        """Generate a unique alert ID (time-based with a random suffix)."""
        millis = int(self._clock().timestamp() * 1000)
        return f"alert-{millis}-{uuid.uuid4().hex[:9]}"

    def add(self, alert: Alert) -> Alert:
        """Insert a new alert. Returns a copy of the stored alert."""
        with self.lock:
            if alert.id in self._index:
                logger.warning(f"Alert {alert.id} already stored, ignoring duplicate")
                return self._index[alert.id].copy()
            self._alerts.append(alert)
            self._index[alert.id] = alert
        logger.info(f"Created alert {alert.id} ({alert.alert_type.value}/{alert.severity.value})")
        return alert.copy()

    def get(self, alert_id: str) -> Alert | None:
        with self.lock:
            alert = self._index.get(alert_id)
            return alert.copy() if alert else None

    def __len__(self) -> int:
        with self.lock:
            return len(self._alerts)

    def snapshot(self) -> list[Alert]:
        """Copies of all alerts, newest first."""
        with self.lock:
            # Latest insertion first among equal timestamps
            alerts = [a.copy() for a in reversed(self._alerts)]
        alerts.sort(key=lambda a: a.timestamp, reverse=True)
        return alerts

    def list_unread(self) -> list[Alert]:
        """Alerts that are neither read nor resolved, newest first."""
        return [a for a in self.snapshot() if not a.is_read and not a.is_resolved]

    def list_critical(self) -> list[Alert]:
        """Unresolved critical alerts, newest first."""
        return [
            a for a in self.snapshot()
            if a.severity == Severity.CRITICAL and not a.is_resolved
        ]

    def list_unresolved_ids(self) -> list[str]:
        with self.lock:
            return [a.id for a in self._alerts if not a.is_resolved]

    # Lifecycle primitives

    def mark_read(self, alert_id: str) -> bool:
        """Mark one alert read. Unknown or already-read ids are a no-op."""
        with self.lock:
            alert = self._index.get(alert_id)
            if alert is None:
                logger.debug(f"mark_read: unknown alert {alert_id}")
                return False
            return alert.mark_read()

    def mark_all_read(self) -> int:
        """Mark every alert read. Returns how many changed."""
        with self.lock:
            return sum(1 for alert in self._alerts if alert.mark_read())

    def resolve(self, alert_id: str, resolved_by: str) -> bool:
        """Resolve an alert if it exists and is still open."""
        with self.lock:
            alert = self._index.get(alert_id)
            if alert is None:
                logger.debug(f"resolve: unknown alert {alert_id}")
                return False
            applied = alert.resolve(resolved_by, self._clock())
        if applied:
            logger.info(f"Alert {alert_id} resolved by {resolved_by}")
        else:
            logger.debug(f"Alert {alert_id} already resolved, keeping first resolution")
        return applied
