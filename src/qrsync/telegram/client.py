from __future__ import annotations

from pathlib import Path, PurePosixPath

import httpx

from qrsync.core.exceptions import TelegramAPIError
from qrsync.telegram.base import TelegramBot


class TelegramClient(TelegramBot):
    """Bot API client sharing one connection pool across webhook invocations."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = "https://api.telegram.org",
        timeout_seconds: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)

    def _method_url(self, method: str) -> str:
        return f"{self._base_url}/bot{self._token}/{method}"

    def _file_url(self, file_path: str) -> str:
        return f"{self._base_url}/file/bot{self._token}/{file_path}"

    @staticmethod
    def _validate_telegram_response(method: str, response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError:
            data = None
        if response.is_error:
            description = data.get("description") if isinstance(data, dict) else None
            raise TelegramAPIError(
                method,
                description or f"HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if not isinstance(data, dict) or not data.get("ok", False):
            raise TelegramAPIError(method, str(data), status_code=response.status_code)
        return data

    async def _post(self, method: str, payload: dict) -> dict:
        try:
            response = await self._client.post(self._method_url(method), json=payload)
        except httpx.HTTPError as exc:
            # str(exc) of transport errors can include the URL, which embeds the token.
            raise TelegramAPIError(method, type(exc).__name__) from exc
        return self._validate_telegram_response(method, response)

    async def send_message(
        self,
        chat_id: int | str,
        text: str,
        *,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> None:
        payload: dict[str, object] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_to_message_id is not None:
            payload["reply_to_message_id"] = reply_to_message_id
        await self._post("sendMessage", payload)

    async def send_contact(
        self,
        chat_id: int | str,
        phone_number: str,
        first_name: str,
        *,
        vcard: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> None:
        payload: dict[str, object] = {
            "chat_id": chat_id,
            "phone_number": phone_number,
            "first_name": first_name,
        }
        if vcard:
            payload["vcard"] = vcard
        if reply_to_message_id is not None:
            payload["reply_to_message_id"] = reply_to_message_id
        await self._post("sendContact", payload)

    async def get_file_path(self, file_id: str) -> str:
        """Resolve a file id to the server-side path used by the file endpoint."""
        data = await self._post("getFile", {"file_id": file_id})
        result = data.get("result") or {}
        file_path = result.get("file_path")
        if not file_path:
            raise TelegramAPIError("getFile", "response did not include file_path")
        return file_path

    async def download_file(self, file_id: str, destination_dir: Path) -> Path:
        file_path = await self.get_file_path(file_id)
        try:
            response = await self._client.get(self._file_url(file_path))
        except httpx.HTTPError as exc:
            raise TelegramAPIError("downloadFile", type(exc).__name__) from exc
        if response.is_error:
            raise TelegramAPIError(
                "downloadFile",
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        target = Path(destination_dir) / PurePosixPath(file_path).name
        target.write_bytes(response.content)
        return target

    async def aclose(self) -> None:
        await self._client.aclose()
