"""Tests for alert metrics."""

from datetime import datetime, timedelta

import pytest

from alert_engine.alert_store import Alert, AlertType, Severity
from alert_engine.metrics import compute_metrics

BASE = datetime(2024, 6, 3, 9, 0)


def alert(n: int, alert_type=AlertType.QUOTE_REQUEST, severity=Severity.MEDIUM,
          is_read=False, resolved_after: int | None = None) -> Alert:
    a = Alert(
        id=f"alert-{n}",
        alert_type=alert_type,
        severity=severity,
        title="t",
        message="m",
        timestamp=BASE,
        is_read=is_read,
    )
    if resolved_after is not None:
        a.resolve("tester", BASE + timedelta(minutes=resolved_after))
    return a


class TestComputeMetrics:
    def test_empty(self):
        metrics = compute_metrics([])
        assert metrics.total_alerts == 0
        assert metrics.resolution_rate == 0
        assert metrics.average_resolution_time == 0
        assert metrics.alerts_by_type == {}

    def test_counts(self):
        alerts = [
            alert(1),
            alert(2, AlertType.SYSTEM_ERROR, Severity.CRITICAL),
            alert(3, AlertType.SYSTEM_ERROR, Severity.CRITICAL, resolved_after=10),
            alert(4, is_read=True),
        ]
        metrics = compute_metrics(alerts)

        assert metrics.total_alerts == 4
        assert metrics.unread_alerts == 2
        assert metrics.critical_alerts == 1
        assert metrics.alerts_by_type == {"quote_request": 2, "system_error": 2}
        assert metrics.alerts_by_severity == {"medium": 2, "critical": 2}

    def test_resolution_stats(self):
        alerts = [
            alert(1, resolved_after=10),
            alert(2, resolved_after=30),
            alert(3),
            alert(4),
        ]
        metrics = compute_metrics(alerts)

        assert metrics.resolution_rate == pytest.approx(0.5)
        assert metrics.average_resolution_time == pytest.approx(20.0)

    def test_to_dict(self):
        data = compute_metrics([alert(1)]).to_dict()
        assert data["total_alerts"] == 1
        assert data["alerts_by_type"] == {"quote_request": 1}
