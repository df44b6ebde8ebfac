"""Configuration management for the alert engine."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    # Fall back to template for defaults
    template_path = Path(__file__).parent.parent / ".env.template"
    if template_path.exists():
        load_dotenv(template_path)


class Config:
    """Application configuration."""

    # Persistence
    ALERT_ENGINE_DB_PATH: str = os.getenv(
        "ALERT_ENGINE_DB_PATH", "~/.alert-engine/engine.db"
    )

    # Synthetic alert source (demo / soak)
    SYNTHETIC_ALERTS_ENABLED: bool = os.getenv("SYNTHETIC_ALERTS_ENABLED", "true").lower() == "true"
    SYNTHETIC_INTERVAL: float = float(os.getenv("SYNTHETIC_INTERVAL", "30"))
    SYNTHETIC_PROBABILITY: float = float(os.getenv("SYNTHETIC_PROBABILITY", "0.2"))
    AUTO_RESOLVE_INTERVAL: float = float(os.getenv("AUTO_RESOLVE_INTERVAL", "60"))
    AUTO_RESOLVE_PROBABILITY: float = float(os.getenv("AUTO_RESOLVE_PROBABILITY", "0.3"))

    # Delivery
    DELIVERY_WORKERS: int = int(os.getenv("DELIVERY_WORKERS", "4"))
    MANAGEMENT_URL: str = os.getenv("MANAGEMENT_URL", "https://noli.ci/notifications")
    NOTIFICATION_ICON: str = os.getenv("NOTIFICATION_ICON", "/favicon.ico")

    # Email settings
    SMTP_SERVER: str | None = os.getenv("SMTP_SERVER")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str | None = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD: str | None = os.getenv("SMTP_PASSWORD")
    ALERT_EMAIL_FROM: str | None = os.getenv("ALERT_EMAIL_FROM")
    ALERT_EMAIL_TO: list[str] = [
        e.strip() for e in os.getenv("ALERT_EMAIL_TO", "").split(",") if e.strip()
    ]

    # Twilio SMS / WhatsApp settings
    TWILIO_ACCOUNT_SID: str | None = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN: str | None = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_FROM_NUMBER: str | None = os.getenv("TWILIO_FROM_NUMBER")
    ALERT_SMS_TO_NUMBERS: list[str] = [
        n.strip() for n in os.getenv("ALERT_SMS_TO_NUMBERS", "").split(",") if n.strip()
    ]
    ALERT_SMS_USE_WHATSAPP: bool = os.getenv("ALERT_SMS_USE_WHATSAPP", "true").lower() == "true"

    # Push via Teams Workflows webhook
    TEAMS_WEBHOOK_URL: str | None = os.getenv("TEAMS_WEBHOOK_URL")

    @classmethod
    def is_email_configured(cls) -> bool:
        """Check if SMTP settings are present."""
        return bool(cls.SMTP_SERVER and cls.ALERT_EMAIL_TO)

    @classmethod
    def is_twilio_configured(cls) -> bool:
        """Check if Twilio credentials and recipients are present."""
        return bool(
            cls.TWILIO_ACCOUNT_SID and
            cls.TWILIO_AUTH_TOKEN and
            cls.TWILIO_FROM_NUMBER and
            cls.ALERT_SMS_TO_NUMBERS
        )

    @classmethod
    def get_db_path(cls) -> str:
        """Get the expanded key/value database path."""
        return os.path.expanduser(cls.ALERT_ENGINE_DB_PATH)


config = Config()
