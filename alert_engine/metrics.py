"""Derived alert statistics."""

from collections import Counter
from typing import Iterable

from .alert_store.models import Alert, AlertMetrics, Severity


def compute_metrics(alerts: Iterable[Alert]) -> AlertMetrics:
    """Compute metrics over an alert snapshot.

    Averages only consider resolved alerts; both the average resolution time
    and the resolution rate are 0 when there is nothing to divide by.
    """
    alerts = list(alerts)
    total = len(alerts)

    resolution_minutes = [
        minutes for minutes in (a.resolution_minutes() for a in alerts)
        if minutes is not None
    ]
    resolved = len(resolution_minutes)

    return AlertMetrics(
        total_alerts=total,
        unread_alerts=sum(1 for a in alerts if not a.is_read and not a.is_resolved),
        critical_alerts=sum(
            1 for a in alerts
            if a.severity == Severity.CRITICAL and not a.is_resolved
        ),
        alerts_by_type=dict(Counter(a.alert_type.value for a in alerts)),
        alerts_by_severity=dict(Counter(a.severity.value for a in alerts)),
        average_resolution_time=(
            sum(resolution_minutes) / resolved if resolved else 0.0
        ),
        resolution_rate=resolved / total if total else 0.0,
    )
