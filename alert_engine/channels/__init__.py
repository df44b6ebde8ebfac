"""Delivery channels for alerts and notifications."""

from .email import EmailChannel, EmailMessage, LoggingEmailChannel
from .messaging import (
    LoggingMessagingChannel,
    TwilioMessagingChannel,
    format_message,
    mask_phone,
)
from .push import (
    ConsoleNotifier,
    NotificationHandle,
    PermissionState,
    PlatformNotifier,
    TeamsNotifier,
)
from .factory import DeliveryChannels, create_channels_from_config

__all__ = [
    "EmailChannel",
    "EmailMessage",
    "LoggingEmailChannel",
    "LoggingMessagingChannel",
    "TwilioMessagingChannel",
    "format_message",
    "mask_phone",
    "ConsoleNotifier",
    "NotificationHandle",
    "PermissionState",
    "PlatformNotifier",
    "TeamsNotifier",
    "DeliveryChannels",
    "create_channels_from_config",
]
