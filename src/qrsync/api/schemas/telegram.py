"""Telegram webhook payload and response contracts."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TelegramChat(BaseModel):
    """Subset of Telegram chat data required for replies."""

    id: int | str
    type: str | None = None


class TelegramPhotoSize(BaseModel):
    """One resolution variant of a photo."""

    file_id: str
    file_unique_id: str | None = None
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    file_size: int | None = None

    @property
    def area(self) -> int:
        return self.width * self.height


class TelegramMessage(BaseModel):
    """Subset of Telegram message data the dispatcher routes on."""

    model_config = ConfigDict(extra="ignore")

    message_id: int
    chat: TelegramChat
    text: str | None = None
    photo: list[TelegramPhotoSize] = Field(default_factory=list)


class TelegramUpdate(BaseModel):
    """Top-level Telegram update. Only `message` updates are dispatched."""

    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: TelegramMessage | None = None


class WebhookOutcome(StrEnum):
    """Terminal outcome of one webhook invocation."""

    PROCESSED = "processed"
    IGNORED = "ignored"
    DUPLICATE = "duplicate"
    FAILED = "failed"
    INVALID = "invalid"


class TelegramWebhookAck(BaseModel):
    """Webhook acknowledgement payload, always delivered with HTTP 200."""

    ok: bool = True
    status: WebhookOutcome
    update_id: int | None = None
    duplicate: bool = False
