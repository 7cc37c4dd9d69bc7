"""Webhook dispatch: dedup gate, message routing and the outermost error boundary."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from qrsync.api.schemas.telegram import TelegramMessage, TelegramUpdate, WebhookOutcome
from qrsync.core.observability import log_event
from qrsync.core.request_context import reset_update_id, set_update_id
from qrsync.gateway.commands import handle_text
from qrsync.gateway.idempotency import IdempotencyGate
from qrsync.gateway.messages import ERROR_MESSAGE
from qrsync.gateway.photos import PhotoDecodeHandler
from qrsync.telegram.base import TelegramBot

logger = logging.getLogger(__name__)


def update_id_from_raw_update(raw: object) -> int | None:
    """Return the integer `update_id` of a payload that failed validation, if any."""
    if not isinstance(raw, Mapping):
        return None
    update_id = raw.get("update_id")
    if isinstance(update_id, bool) or not isinstance(update_id, int):
        return None
    return update_id


def chat_id_from_raw_update(raw: object) -> int | str | None:
    """Best-effort chat id lookup in a payload that failed validation."""
    if not isinstance(raw, Mapping):
        return None
    message = raw.get("message")
    if not isinstance(message, Mapping):
        return None
    chat = message.get("chat")
    if not isinstance(chat, Mapping):
        return None
    chat_id = chat.get("id")
    if isinstance(chat_id, bool) or not isinstance(chat_id, (int, str)):
        return None
    return chat_id


class UpdateDispatcher:
    """Process one Telegram update end to end; never raises."""

    def __init__(
        self,
        *,
        bot: TelegramBot,
        gate: IdempotencyGate,
        photo_handler: PhotoDecodeHandler,
        notify_duplicates: bool = False,
    ) -> None:
        self._bot = bot
        self._gate = gate
        self._photo_handler = photo_handler
        self._notify_duplicates = notify_duplicates

    async def dispatch(self, update: TelegramUpdate) -> WebhookOutcome:
        message = update.message
        chat_id = message.chat.id if message is not None else None
        token = set_update_id(update.update_id)
        try:
            log_event(logger, event="telegram.webhook.received", chat_id=chat_id)
            if not await self._gate.should_process_async(update.update_id):
                log_event(logger, event="telegram.webhook.duplicate", chat_id=chat_id)
                if self._notify_duplicates and chat_id is not None:
                    await self._send_error_message(chat_id)
                return WebhookOutcome.DUPLICATE

            if message is None:
                return WebhookOutcome.IGNORED
            handled = await self.route(message)
            return WebhookOutcome.PROCESSED if handled else WebhookOutcome.IGNORED
        except Exception:
            logger.exception("Failed to process Telegram update %s", update.update_id)
            log_event(
                logger,
                level=logging.ERROR,
                event="telegram.webhook.failed",
                chat_id=chat_id,
            )
            if chat_id is not None:
                await self._send_error_message(chat_id)
            return WebhookOutcome.FAILED
        finally:
            reset_update_id(token)

    async def dispatch_invalid(self, raw: object) -> WebhookOutcome:
        """Acknowledge a payload that is not a valid update, telling the chat if possible.

        When the payload still carries an integer `update_id` it goes through the
        gate first, so a redelivered malformed update is reported only once.
        """
        update_id = update_id_from_raw_update(raw)
        chat_id = chat_id_from_raw_update(raw)
        token = set_update_id(update_id)
        try:
            log_event(
                logger,
                level=logging.WARNING,
                event="telegram.webhook.invalid_payload",
                chat_id=chat_id,
            )
            if update_id is not None and not await self._gate.should_process_async(update_id):
                log_event(logger, event="telegram.webhook.duplicate", chat_id=chat_id)
                if self._notify_duplicates and chat_id is not None:
                    await self._send_error_message(chat_id)
                return WebhookOutcome.DUPLICATE
        except Exception:
            logger.exception("Failed to check malformed Telegram update %s", update_id)
            log_event(
                logger,
                level=logging.ERROR,
                event="telegram.webhook.failed",
                chat_id=chat_id,
            )
            if chat_id is not None:
                await self._send_error_message(chat_id)
            return WebhookOutcome.FAILED
        finally:
            reset_update_id(token)

        if chat_id is not None:
            await self._send_error_message(chat_id)
        return WebhookOutcome.INVALID

    async def route(self, message: TelegramMessage) -> bool:
        """Hand the message to the text or photo handler. Returns False for a no-op."""
        if message.text:
            return await handle_text(self._bot, message.chat.id, message.text)
        if message.photo:
            await self._photo_handler.handle(message)
            return True
        return False

    async def _send_error_message(self, chat_id: int | str) -> None:
        try:
            await self._bot.send_message(chat_id, ERROR_MESSAGE)
        except Exception:
            logger.exception("Failed to send error message to chat %s", chat_id)
