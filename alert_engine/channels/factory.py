"""Pick real or simulated channels based on configuration."""

import logging
from dataclasses import dataclass, field

from ..config import config
from .email import EmailChannel, LoggingEmailChannel
from .messaging import LoggingMessagingChannel, TwilioMessagingChannel
from .push import ConsoleNotifier, PlatformNotifier, TeamsNotifier

logger = logging.getLogger(__name__)


@dataclass
class DeliveryChannels:
    """The three outbound paths used by the dispatchers."""
    push: PlatformNotifier = field(default_factory=ConsoleNotifier)
    email: EmailChannel | LoggingEmailChannel = field(default_factory=LoggingEmailChannel)
    messaging: TwilioMessagingChannel | LoggingMessagingChannel = field(
        default_factory=LoggingMessagingChannel
    )


def create_channels_from_config() -> DeliveryChannels:
    """
    Build delivery channels from configuration.

    Uses SMTP, Twilio and Teams when their settings are present, otherwise
    the log-only stand-ins.
    """
    if config.TEAMS_WEBHOOK_URL:
        push: PlatformNotifier = TeamsNotifier(config.TEAMS_WEBHOOK_URL)
        logger.info("Push notifications via Teams webhook")
    else:
        push = ConsoleNotifier()

    if config.is_email_configured():
        email = EmailChannel(
            smtp_server=config.SMTP_SERVER,
            smtp_port=config.SMTP_PORT,
            smtp_username=config.SMTP_USERNAME,
            smtp_password=config.SMTP_PASSWORD,
            from_address=config.ALERT_EMAIL_FROM,
            to_addresses=config.ALERT_EMAIL_TO,
        )
        logger.info(f"Email configured for {len(config.ALERT_EMAIL_TO)} recipient(s)")
    else:
        email = LoggingEmailChannel()

    if config.is_twilio_configured():
        messaging = TwilioMessagingChannel(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_FROM_NUMBER,
            to_numbers=config.ALERT_SMS_TO_NUMBERS,
            whatsapp=config.ALERT_SMS_USE_WHATSAPP,
        )
        logger.info(f"Twilio configured for {len(config.ALERT_SMS_TO_NUMBERS)} recipient(s)")
    else:
        messaging = LoggingMessagingChannel()

    return DeliveryChannels(push=push, email=email, messaging=messaging)
