"""API schema models."""

from .errors import ErrorDetail, ErrorResponse
from .telegram import (
    TelegramChat,
    TelegramMessage,
    TelegramPhotoSize,
    TelegramUpdate,
    TelegramWebhookAck,
    WebhookOutcome,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "TelegramChat",
    "TelegramMessage",
    "TelegramPhotoSize",
    "TelegramUpdate",
    "TelegramWebhookAck",
    "WebhookOutcome",
]
