"""Alert generation.

`build_alert` turns an alert type plus optional overrides into an Alert,
filling the gaps from the type's template and the configured severity.
`AlertGenerator` drives the synthetic source used for demos and soak runs:
random new alerts, random auto-resolution, and a fixed demo seed.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Protocol

from .alert_store.models import Alert, AlertType, Severity, SubjectRef
from .settings import AlertSettings

logger = logging.getLogger(__name__)

AUTO_RESOLVER = "system-auto-resolve"


def build_alert(
    alert_id: str,
    alert_type: AlertType,
    timestamp: datetime,
    settings: AlertSettings,
    severity: Severity | None = None,
    title: str | None = None,
    message: str | None = None,
    subject: SubjectRef | None = None,
    action_url: str | None = None,
    action_text: str | None = None,
) -> Alert:
    """Create an Alert from its type template.

    An explicit severity wins over the configured one for the type.
    """
    template = alert_type.template
    return Alert(
        id=alert_id,
        alert_type=alert_type,
        severity=severity or settings.type_settings(alert_type).severity,
        title=title or template.title,
        message=message or template.message,
        timestamp=timestamp,
        subject=subject,
        is_read=False,
        action_required=template.action_required,
        action_url=action_url or template.action_url,
        action_text=action_text or template.action_text,
    )


class AlertWriter(Protocol):
    """The engine operations the generator is allowed to use."""

    def raise_alert(self, alert_type, **kwargs) -> Alert | None: ...

    def resolve_alert(self, alert_id: str, resolved_by: str) -> bool: ...

    def mark_as_read(self, alert_id: str) -> bool: ...

    def get_settings(self) -> AlertSettings: ...

    def unresolved_ids(self) -> list[str]: ...


class AlertGenerator:
    """Synthetic alert source.

    Goes through the same public operations as any other writer.
    """

    def __init__(
        self,
        writer: AlertWriter,
        rng: random.Random | None = None,
        synthetic_probability: float = 0.2,
        auto_resolve_probability: float = 0.3,
    ):
        self.writer = writer
        self.rng = rng or random.Random()
        self.synthetic_probability = synthetic_probability
        self.auto_resolve_probability = auto_resolve_probability

    def generate_random(self) -> Alert | None:
        """Maybe raise one alert of a random enabled type."""
        try:
            if self.rng.random() >= self.synthetic_probability:
                return None

            enabled = self.writer.get_settings().enabled_types()
            if not enabled:
                logger.debug("No alert types enabled, skipping synthetic alert")
                return None

            alert_type = self.rng.choice(enabled)
            return self.writer.raise_alert(alert_type)
        except Exception as e:
            logger.error(f"Synthetic alert generation failed: {e}")
            return None

    def auto_resolve(self) -> str | None:
        """Maybe resolve one random unresolved alert.

        Returns:
            The resolved alert ID, or None if nothing was resolved
        """
        try:
            unresolved = self.writer.unresolved_ids()
            if not unresolved or self.rng.random() >= self.auto_resolve_probability:
                return None

            alert_id = self.rng.choice(unresolved)
            if self.writer.resolve_alert(alert_id, AUTO_RESOLVER):
                return alert_id
            return None
        except Exception as e:
            logger.error(f"Auto-resolution failed: {e}")
            return None

    def seed_demo_alerts(self, now: datetime | None = None) -> list[Alert]:
        """Insert a small set of realistic sample alerts."""
        now = now or datetime.now()
        seeded = []

        quote_request = self.writer.raise_alert(
            AlertType.QUOTE_REQUEST,
            severity=Severity.MEDIUM,
            message="Marie Konan a demandé un devis pour une Toyota Yaris 2020",
            subject=SubjectRef(client_id="client-1", client_name="Marie Konan",
                               quote_id="quote-123"),
            timestamp=now - timedelta(minutes=5),
        )
        expiring = self.writer.raise_alert(
            AlertType.QUOTE_EXPIRING,
            severity=Severity.HIGH,
            message="Le devis de Kouassi Yeo expire dans 48 heures",
            subject=SubjectRef(client_id="client-2", client_name="Kouassi Yeo",
                               quote_id="quote-456"),
            timestamp=now - timedelta(minutes=10),
        )
        conversion = self.writer.raise_alert(
            AlertType.CONVERSION_RATE_LOW,
            severity=Severity.HIGH,
            message="Votre taux de conversion est de 12% cette semaine (objectif: 25%)",
            timestamp=now - timedelta(minutes=30),
        )
        if conversion:
            self.writer.mark_as_read(conversion.id)

        for alert in (quote_request, expiring, conversion):
            if alert:
                seeded.append(alert)

        logger.info(f"Seeded {len(seeded)} demo alert(s)")
        return seeded
