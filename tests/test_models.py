"""Tests for alert data models."""

from datetime import datetime, timedelta

from alert_engine.alert_store import (
    ALERT_TEMPLATES,
    Alert,
    AlertMetrics,
    AlertType,
    Severity,
    SubjectRef,
)


def make_alert(**overrides) -> Alert:
    defaults = dict(
        id="alert-1",
        alert_type=AlertType.QUOTE_REQUEST,
        severity=Severity.MEDIUM,
        title="Nouvelle demande de devis",
        message="Un nouveau client a demandé un devis",
        timestamp=datetime(2024, 6, 3, 10, 0),
    )
    defaults.update(overrides)
    return Alert(**defaults)


class TestEnums:
    """Test enum definitions."""

    def test_severity_values(self):
        assert Severity.LOW.value == "low"
        assert Severity.MEDIUM.value == "medium"
        assert Severity.HIGH.value == "high"
        assert Severity.CRITICAL.value == "critical"

    def test_alert_type_parse(self):
        assert AlertType.parse("quote_expiring") == AlertType.QUOTE_EXPIRING
        assert AlertType.parse(AlertType.SYSTEM_ERROR) == AlertType.SYSTEM_ERROR
        assert AlertType.parse("not_a_type") is None


class TestTemplates:
    """Test the per-type template table."""

    def test_every_type_has_template(self):
        for alert_type in AlertType:
            assert alert_type in ALERT_TEMPLATES
            assert alert_type.template.title
            assert alert_type.template.action_url.startswith("/assureur/")

    def test_default_severities(self):
        assert AlertType.SYSTEM_ERROR.template.default_severity == Severity.CRITICAL
        assert AlertType.QUOTE_EXPIRING.template.default_severity == Severity.HIGH
        assert AlertType.QUOTE_REQUEST.template.default_severity == Severity.MEDIUM

    def test_system_error_needs_no_action(self):
        assert AlertType.SYSTEM_ERROR.template.action_required is False
        assert AlertType.PAYMENT_DUE.template.action_required is True


class TestAlert:
    """Tests for Alert read and resolution tracking."""

    def test_mark_read_once(self):
        alert = make_alert()
        assert alert.mark_read() is True
        assert alert.is_read
        assert alert.mark_read() is False

    def test_resolve_keeps_first_resolution(self):
        alert = make_alert()
        first = datetime(2024, 6, 3, 10, 30)

        assert alert.resolve("alice", first) is True
        assert alert.resolve("bob", first + timedelta(minutes=5)) is False

        assert alert.resolved_by == "alice"
        assert alert.resolved_at == first
        assert alert.is_resolved

    def test_resolution_minutes(self):
        alert = make_alert()
        assert alert.resolution_minutes() is None

        alert.resolve("alice", alert.timestamp + timedelta(minutes=45))
        assert alert.resolution_minutes() == 45

    def test_copy_is_independent(self):
        alert = make_alert()
        copied = alert.copy()
        copied.is_read = True
        assert alert.is_read is False

    def test_to_dict(self):
        alert = make_alert(
            subject=SubjectRef(client_id="client-1", client_name="Marie Konan"),
        )
        data = alert.to_dict()

        assert data["id"] == "alert-1"
        assert data["type"] == "quote_request"
        assert data["severity"] == "medium"
        assert data["timestamp"] == "2024-06-03T10:00:00"
        assert data["subject"]["client_name"] == "Marie Konan"
        assert data["resolved_at"] is None


class TestSubjectRef:
    """Tests for the typed alert subject."""

    def test_round_trip(self):
        subject = SubjectRef(client_id="c1", quote_id="q1")
        assert SubjectRef.from_dict(subject.to_dict()) == subject

    def test_empty_is_none(self):
        assert SubjectRef.from_dict(None) is None
        assert SubjectRef.from_dict({}) is None


class TestAlertMetrics:
    def test_defaults(self):
        metrics = AlertMetrics()
        assert metrics.to_dict()["total_alerts"] == 0
        assert metrics.to_dict()["resolution_rate"] == 0.0
