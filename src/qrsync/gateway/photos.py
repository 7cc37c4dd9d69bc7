"""Photo messages: pick the largest variant, decode its QR code, reply."""

from __future__ import annotations

import asyncio
import logging
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path

from qrsync.api.schemas.telegram import TelegramMessage, TelegramPhotoSize
from qrsync.core.observability import log_event
from qrsync.decoding.image import Bitmap
from qrsync.decoding.vcard import VCard, extract_contact_properties, is_vcard
from qrsync.gateway.messages import (
    CONTACT_DECODED_MESSAGE,
    DECODING_MESSAGE,
    EMPTY_RESULT_MESSAGE,
    TEXT_DECODED_MESSAGE,
    size_limit_message,
)
from qrsync.telegram.base import MARKDOWN, TelegramBot

logger = logging.getLogger(__name__)

ImageDecoder = Callable[[bytes], Bitmap]
BarcodeDecoder = Callable[[Bitmap], str]
ContactParser = Callable[[str], VCard]

TEMP_DIR_PREFIX = "qrsync-"


def select_largest_photo(photos: Sequence[TelegramPhotoSize]) -> TelegramPhotoSize:
    """Return the variant with the largest area; later entries win ties."""
    if not photos:
        raise ValueError("Photo message has no size variants")
    largest = photos[0]
    for photo in photos[1:]:
        if photo.area >= largest.area:
            largest = photo
    return largest


def exceeds_size_limit(photo: TelegramPhotoSize, limit: int) -> bool:
    return photo.width > limit or photo.height > limit


class PhotoDecodeHandler:
    """Download, decode and answer one photo message."""

    def __init__(
        self,
        *,
        bot: TelegramBot,
        image_decoder: ImageDecoder,
        barcode_decoder: BarcodeDecoder,
        contact_parser: ContactParser,
        max_photo_size: int,
    ) -> None:
        self._bot = bot
        self._image_decoder = image_decoder
        self._barcode_decoder = barcode_decoder
        self._contact_parser = contact_parser
        self._max_photo_size = max_photo_size

    async def handle(self, message: TelegramMessage) -> None:
        chat_id = message.chat.id
        photo = select_largest_photo(message.photo)

        if exceeds_size_limit(photo, self._max_photo_size):
            log_event(
                logger,
                event="telegram.photo.rejected_size",
                width=photo.width,
                height=photo.height,
                limit=self._max_photo_size,
            )
            await self._bot.send_message(
                chat_id,
                size_limit_message(self._max_photo_size),
                parse_mode=MARKDOWN,
            )
            return

        await self._bot.send_message(chat_id, DECODING_MESSAGE, parse_mode=MARKDOWN)
        payload = await self.decode_photo(photo)
        log_event(
            logger,
            event="telegram.photo.decoded",
            found=bool(payload),
            vcard=is_vcard(payload),
            width=photo.width,
            height=photo.height,
        )

        if payload == "":
            await self._bot.send_message(
                chat_id,
                EMPTY_RESULT_MESSAGE,
                parse_mode=MARKDOWN,
                reply_to_message_id=message.message_id,
            )
        elif is_vcard(payload):
            await self._bot.send_message(chat_id, CONTACT_DECODED_MESSAGE, parse_mode=MARKDOWN)
            await self._send_contact_reply(chat_id, message.message_id, payload)
        else:
            await self._bot.send_message(chat_id, TEXT_DECODED_MESSAGE, parse_mode=MARKDOWN)
            await self._bot.send_message(
                chat_id,
                payload,
                reply_to_message_id=message.message_id,
            )

    async def decode_photo(self, photo: TelegramPhotoSize) -> str:
        """Return the QR payload of `photo`, or "" when no code is found."""
        with tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX) as staging_dir:
            path = await self._bot.download_file(photo.file_id, Path(staging_dir))
            data = await asyncio.to_thread(path.read_bytes)
        bitmap = await asyncio.to_thread(self._image_decoder, data)
        return await asyncio.to_thread(self._barcode_decoder, bitmap)

    async def _send_contact_reply(self, chat_id: int | str, message_id: int, vcard: str) -> None:
        properties = extract_contact_properties(self._contact_parser(vcard))
        await self._bot.send_contact(
            chat_id,
            properties.telephone,
            properties.name,
            vcard=vcard,
            reply_to_message_id=message_id,
        )
