"""SMS / WhatsApp channels using Twilio, plus a log-only stand-in.

Messages are short plain text: title, body, and a link where the recipient
can manage their notification settings. WhatsApp goes through the same
Twilio Messages API with ``whatsapp:``-prefixed addresses.
"""

import logging

logger = logging.getLogger(__name__)

BRAND = "NOLI Assurance"


def format_message(title: str, message: str, management_url: str) -> str:
    """Format the SMS/WhatsApp text for an alert or notification."""
    return "\n".join([
        BRAND,
        "",
        title,
        message,
        "",
        f"Gérez vos notifications: {management_url}",
    ])


def mask_phone(phone: str) -> str:
    """Mask all but the last four digits."""
    return phone[-4:].rjust(len(phone), "*")


class TwilioMessagingChannel:
    """Send SMS or WhatsApp messages via Twilio."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        to_numbers: list[str] | None = None,
        whatsapp: bool = True,
    ):
        """
        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            from_number: Sending number in international format
            to_numbers: Default recipients in international format
            whatsapp: Address recipients on WhatsApp rather than plain SMS
        """
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.to_numbers = to_numbers or []
        self.whatsapp = whatsapp
        self._client = None

    @property
    def label(self) -> str:
        return "WhatsApp" if self.whatsapp else "SMS"

    @property
    def client(self):
        """Twilio REST client, created on first use."""
        if self._client is None:
            try:
                from twilio.rest import Client
            except ImportError as e:
                raise ImportError("The twilio package is required: pip install twilio") from e
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def _address(self, phone: str) -> str:
        return f"whatsapp:{phone}" if self.whatsapp else phone

    def _deliver(self, message: str, phone: str) -> bool:
        try:
            self.client.messages.create(
                body=message,
                from_=self._address(self.from_number),
                to=self._address(phone),
            )
        except Exception as e:
            logger.error(f"{self.label} to {mask_phone(phone)} failed: {e}")
            return False
        logger.info(f"{self.label} sent to {mask_phone(phone)}")
        return True

    def send(self, message: str, to_numbers: list[str] | None = None) -> bool:
        """Send ``message`` to every recipient; True only if all succeeded."""
        recipients = to_numbers or self.to_numbers
        if not recipients:
            logger.warning(f"{self.label}: no recipient numbers configured")
            return False

        results = [self._deliver(message, phone) for phone in recipients]
        return all(results)

    def is_configured(self) -> bool:
        credentials = self.account_sid and self.auth_token and self.from_number
        return bool(credentials and self.to_numbers)


class LoggingMessagingChannel:
    """Simulated SMS/WhatsApp delivery that only logs and remembers messages."""

    def __init__(self):
        self.sent: list[str] = []

    def send(self, message: str, to_numbers: list[str] | None = None) -> bool:
        self.sent.append(message)
        logger.info(f"WhatsApp (simulated): {message[:100]!r}")
        return True

    def is_configured(self) -> bool:
        return True
