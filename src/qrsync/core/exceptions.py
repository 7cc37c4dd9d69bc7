"""Exception hierarchy shared by the webhook gateway and its collaborators."""


class QRSyncError(Exception):
    """Base class for errors raised by this service."""


class TelegramAPIError(QRSyncError):
    """Bot API call failed at the HTTP level or answered with ok=false."""

    def __init__(self, method: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(f"Telegram {method} failed: {message}")
        self.method = method
        self.status_code = status_code


class ImageDecodeError(QRSyncError):
    """Downloaded bytes could not be decoded into a pixel bitmap."""


class MarkerStoreError(QRSyncError):
    """The dedup marker backend could not complete an operation."""
