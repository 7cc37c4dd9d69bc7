"""Per-request context values used for log correlation."""

from __future__ import annotations

from contextvars import ContextVar, Token

_REQUEST_ID: ContextVar[str | None] = ContextVar("qrsync_request_id", default=None)
_UPDATE_ID: ContextVar[int | None] = ContextVar("qrsync_update_id", default=None)


def get_request_id() -> str | None:
    """Return the active request correlation identifier, if present."""
    return _REQUEST_ID.get()


def set_request_id(request_id: str) -> Token[str | None]:
    """Store a request identifier in context and return the reset token."""
    return _REQUEST_ID.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    _REQUEST_ID.reset(token)


def get_update_id() -> int | None:
    """Return the Telegram update being dispatched in this context, if any."""
    return _UPDATE_ID.get()


def set_update_id(update_id: int | None) -> Token[int | None]:
    return _UPDATE_ID.set(update_id)


def reset_update_id(token: Token[int | None]) -> None:
    _UPDATE_ID.reset(token)
