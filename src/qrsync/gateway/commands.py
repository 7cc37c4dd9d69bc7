"""Static replies for slash commands."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from qrsync.gateway.messages import ABOUT_MESSAGE, APP_MESSAGE, START_MESSAGE
from qrsync.telegram.base import MARKDOWN, TelegramBot

COMMAND_REPLIES: Mapping[str, str] = MappingProxyType(
    {
        "/start": START_MESSAGE,
        "/about": ABOUT_MESSAGE,
        "/app": APP_MESSAGE,
    }
)


def reply_for_command(text: str) -> str | None:
    """Exact-match lookup; unknown text has no reply."""
    return COMMAND_REPLIES.get(text)


async def handle_text(bot: TelegramBot, chat_id: int | str, text: str) -> bool:
    """Send the command's fixed reply. Returns False when the text is not a command."""
    reply = reply_for_command(text)
    if reply is None:
        return False
    await bot.send_message(chat_id, reply, parse_mode=MARKDOWN)
    return True
