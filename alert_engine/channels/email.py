"""Email channels: SMTP delivery and a log-only stand-in.

Alert and notification emails are short: a subject, a plain-text body and
an optional HTML rendering. When no HTML is given one is derived from the
text so mail clients that prefer HTML still show something readable.
"""

import html
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

logger = logging.getLogger(__name__)

SSL_PORT = 465

# Accent colour per alert severity / notification type
ACCENT_COLORS = {
    "critical": "#b91c1c",
    "high": "#c2410c",
    "error": "#b91c1c",
    "warning": "#c2410c",
    "success": "#15803d",
}
DEFAULT_ACCENT = "#1d4ed8"


@dataclass
class EmailMessage:
    """Email message content."""
    subject: str
    text_body: str
    html_body: str | None = None
    message_type: str | None = None  # alert severity or notification type


def render_html(message: EmailMessage) -> str:
    """Wrap the text body in minimal HTML, one paragraph per blank-line block."""
    accent = ACCENT_COLORS.get(message.message_type or "", DEFAULT_ACCENT)
    paragraphs = "".join(
        f"<p>{html.escape(block).replace(chr(10), '<br>')}</p>"
        for block in message.text_body.split("\n\n")
        if block.strip()
    )
    return (
        f'<div style="font-family: sans-serif; border-left: 4px solid {accent}; '
        f'padding-left: 12px">'
        f"<h3>{html.escape(message.subject)}</h3>{paragraphs}</div>"
    )


class EmailChannel:
    """Send emails via SMTP."""

    def __init__(
        self,
        smtp_server: str,
        smtp_port: int = 587,
        smtp_username: str | None = None,
        smtp_password: str | None = None,
        from_address: str | None = None,
        to_addresses: list[str] | None = None,
        use_tls: bool = True,
    ):
        """
        Initialize SMTP email channel.

        Args:
            smtp_server: SMTP server hostname
            smtp_port: 465 for implicit SSL, otherwise plain with optional STARTTLS
            smtp_username: Login user; login is skipped without user and password
            smtp_password: Login password
            from_address: Sender address, defaults to alerts@<smtp_server>
            to_addresses: Default recipients
            use_tls: Issue STARTTLS on non-SSL ports
        """
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.from_address = from_address or f"alerts@{smtp_server}"
        self.to_addresses = to_addresses or []
        self.use_tls = use_tls

    def build_mime(self, message: EmailMessage, recipients: list[str]) -> MIMEMultipart:
        """Assemble the multipart/alternative message."""
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = self.from_address
        mime["To"] = ", ".join(recipients)
        if message.message_type:
            mime["X-Alert-Type"] = message.message_type

        mime.attach(MIMEText(message.text_body, "plain", "utf-8"))
        mime.attach(MIMEText(message.html_body or render_html(message), "html", "utf-8"))
        return mime

    def _connect(self) -> smtplib.SMTP:
        if self.smtp_port == SSL_PORT:
            return smtplib.SMTP_SSL(
                self.smtp_server, self.smtp_port, context=ssl.create_default_context()
            )
        return smtplib.SMTP(self.smtp_server, self.smtp_port)

    def send(self, message: EmailMessage, to_addresses: list[str] | None = None) -> bool:
        """
        Send an email.

        Args:
            message: The email message content
            to_addresses: Override default recipients

        Returns:
            True if sent successfully, False otherwise
        """
        recipients = to_addresses or self.to_addresses
        if not recipients:
            logger.warning("Email: no recipient addresses configured")
            return False

        payload = self.build_mime(message, recipients).as_string()

        try:
            with self._connect() as server:
                if self.smtp_port != SSL_PORT and self.use_tls:
                    server.starttls()
                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)
                server.sendmail(self.from_address, recipients, payload)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email to {len(recipients)} recipient(s) failed: {e}")
            return False

        logger.info(f"Email sent to {len(recipients)} recipient(s): {message.subject}")
        return True

    def is_configured(self) -> bool:
        """Check if email channel is properly configured."""
        return bool(self.smtp_server and self.to_addresses)


class LoggingEmailChannel:
    """Simulated email delivery that only logs and remembers messages."""

    def __init__(self):
        self.sent: list[EmailMessage] = []

    def send(self, message: EmailMessage, to_addresses: list[str] | None = None) -> bool:
        self.sent.append(message)
        logger.info(
            f"Email (simulated): subject={message.subject!r} "
            f"type={message.message_type} body={message.text_body[:100]!r}"
        )
        return True

    def is_configured(self) -> bool:
        return True
