from pathlib import Path
from typing import Protocol

MARKDOWN = "Markdown"


class TelegramBot(Protocol):
    """Outbound Bot API operations used by the dispatch gateway."""

    async def send_message(
        self,
        chat_id: int | str,
        text: str,
        *,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> None:
        """Send a text message, optionally formatted and threaded as a reply."""

    async def send_contact(
        self,
        chat_id: int | str,
        phone_number: str,
        first_name: str,
        *,
        vcard: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> None:
        """Send a contact card."""

    async def download_file(self, file_id: str, destination_dir: Path) -> Path:
        """Download a file by Bot API file id into `destination_dir` and return its path."""
