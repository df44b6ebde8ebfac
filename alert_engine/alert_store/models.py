"""Data models for operational alerts."""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Severity(Enum):
    """Alert severity levels, lowest first."""
    LOW = "low"              # Informational, never sent by email/SMS
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AlertTemplate:
    """Display and routing data shared by every alert of one type."""
    title: str
    message: str
    action_url: str
    action_text: str
    default_severity: Severity
    action_required: bool = True


class AlertType(Enum):
    """Business events that produce alerts."""
    QUOTE_REQUEST = "quote_request"
    QUOTE_EXPIRING = "quote_expiring"
    PAYMENT_DUE = "payment_due"
    POLICY_EXPIRING = "policy_expiring"
    CLIENT_INACTIVE = "client_inactive"
    CONVERSION_RATE_LOW = "conversion_rate_low"
    SYSTEM_ERROR = "system_error"
    PERFORMANCE_ALERT = "performance_alert"

    @property
    def template(self) -> AlertTemplate:
        """Template for this alert type."""
        return ALERT_TEMPLATES[self]

    @classmethod
    def parse(cls, value: "AlertType | str") -> "AlertType | None":
        """Convert a string to an AlertType, returning None if unknown."""
        if isinstance(value, AlertType):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


ALERT_TEMPLATES: dict[AlertType, AlertTemplate] = {
    AlertType.QUOTE_REQUEST: AlertTemplate(
        title="Nouvelle demande de devis",
        message="Un nouveau client a demandé un devis",
        action_url="/assureur/devis",
        action_text="Voir le devis",
        default_severity=Severity.MEDIUM,
    ),
    AlertType.QUOTE_EXPIRING: AlertTemplate(
        title="Devis expirant bientôt",
        message="Un devis arrive à échéance sous peu",
        action_url="/assureur/devis",
        action_text="Contacter le client",
        default_severity=Severity.HIGH,
    ),
    AlertType.PAYMENT_DUE: AlertTemplate(
        title="Paiement dû",
        message="Un paiement doit être effectué",
        action_url="/assureur/paiements",
        action_text="Vérifier le paiement",
        default_severity=Severity.HIGH,
    ),
    AlertType.POLICY_EXPIRING: AlertTemplate(
        title="Contrat expirant",
        message="Un contrat arrive à échéance",
        action_url="/assureur/contrats",
        action_text="Renouveler le contrat",
        default_severity=Severity.HIGH,
    ),
    AlertType.CLIENT_INACTIVE: AlertTemplate(
        title="Client inactif",
        message="Un client n'a pas eu d'activité récente",
        action_url="/assureur/clients",
        action_text="Relancer le client",
        default_severity=Severity.MEDIUM,
    ),
    AlertType.CONVERSION_RATE_LOW: AlertTemplate(
        title="Taux de conversion faible",
        message="Le taux de conversion est inférieur à l'objectif",
        action_url="/assureur/analytics",
        action_text="Voir les analytics",
        default_severity=Severity.HIGH,
    ),
    AlertType.SYSTEM_ERROR: AlertTemplate(
        title="Erreur système",
        message="Une erreur système a été détectée",
        action_url="/assureur/systeme",
        action_text="Vérifier le système",
        default_severity=Severity.CRITICAL,
        action_required=False,
    ),
    AlertType.PERFORMANCE_ALERT: AlertTemplate(
        title="Alerte de performance",
        message="Une métrique de performance nécessite attention",
        action_url="/assureur/performance",
        action_text="Analyser la performance",
        default_severity=Severity.MEDIUM,
    ),
}


@dataclass(frozen=True)
class SubjectRef:
    """Entity an alert is about, for correlation."""
    client_id: str | None = None
    client_name: str | None = None
    quote_id: str | None = None
    policy_id: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> "SubjectRef | None":
        if not data:
            return None
        return cls(
            client_id=data.get("client_id"),
            client_name=data.get("client_name"),
            quote_id=data.get("quote_id"),
            policy_id=data.get("policy_id"),
        )


@dataclass
class Alert:
    """An operational alert with read and resolution tracking.

    Only the alert store mutates instances; everything handed to callers is a
    copy.
    """
    id: str
    alert_type: AlertType
    severity: Severity
    title: str
    message: str
    timestamp: datetime
    subject: SubjectRef | None = None
    is_read: bool = False
    action_required: bool = True
    action_url: str | None = None
    action_text: str | None = None
    resolved_at: datetime | None = None
    resolved_by: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None

    def mark_read(self) -> bool:
        """Set the read flag. Returns False if it was already set."""
        if self.is_read:
            return False
        self.is_read = True
        return True

    def resolve(self, resolved_by: str, at: datetime) -> bool:
        """Resolve the alert once. Later calls leave the first resolution intact."""
        if self.resolved_at is not None:
            return False
        self.resolved_at = at
        self.resolved_by = resolved_by
        return True

    def resolution_minutes(self) -> float | None:
        """Minutes between creation and resolution, None while unresolved."""
        if self.resolved_at is None:
            return None
        return (self.resolved_at - self.timestamp).total_seconds() / 60

    def copy(self) -> "Alert":
        return dataclasses.replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "type": self.alert_type.value,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "subject": self.subject.to_dict() if self.subject else None,
            "timestamp": self.timestamp.isoformat(),
            "is_read": self.is_read,
            "action_required": self.action_required,
            "action_url": self.action_url,
            "action_text": self.action_text,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolved_by": self.resolved_by,
        }


@dataclass
class AlertMetrics:
    """Statistics derived from the current alert set."""
    total_alerts: int = 0
    unread_alerts: int = 0
    critical_alerts: int = 0
    alerts_by_type: dict[str, int] = field(default_factory=dict)
    alerts_by_severity: dict[str, int] = field(default_factory=dict)
    average_resolution_time: float = 0.0  # minutes
    resolution_rate: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)
