"""Shared FastAPI dependencies."""

from fastapi import Request

from qrsync.core.config import Settings, get_settings
from qrsync.gateway.dispatcher import UpdateDispatcher
from qrsync.markers.base import MarkerStore


def get_request_settings(request: Request) -> Settings:
    """Prefer the settings captured at startup so tests can override them per app."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        settings = get_settings()
    return settings


def get_dispatcher(request: Request) -> UpdateDispatcher:
    """Return the update dispatcher built during app startup."""
    dispatcher: UpdateDispatcher | None = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise RuntimeError("Update dispatcher is not initialized")
    return dispatcher


def get_marker_store(request: Request) -> MarkerStore | None:
    return getattr(request.app.state, "marker_store", None)
