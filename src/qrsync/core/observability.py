"""Structured lifecycle logging for webhook dispatch."""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any

from qrsync.core.request_context import get_request_id, get_update_id

_MAX_TEXT_FIELD_LENGTH = 120


def _normalize_field_value(value: Any) -> Any:
    """Convert runtime values into JSON-safe primitives for logs."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, str):
        # Decoded payloads can be long and may carry personal data; keep a prefix only.
        if len(value) > _MAX_TEXT_FIELD_LENGTH:
            return value[:_MAX_TEXT_FIELD_LENGTH] + "..."
        return value
    if isinstance(value, (int, float, bool)) or value is None:
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _normalize_field_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_field_value(item) for item in value]
    return str(value)


def log_event(
    logger: logging.Logger,
    *,
    event: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Emit a stable structured event record."""
    normalized_fields = {
        key: _normalize_field_value(value) for key, value in sorted(fields.items())
    }
    request_id = get_request_id()
    if request_id is not None and "request_id" not in normalized_fields:
        normalized_fields["request_id"] = request_id
    update_id = get_update_id()
    if update_id is not None and "update_id" not in normalized_fields:
        normalized_fields["update_id"] = update_id
    logger.log(
        level,
        "event=%s fields=%s",
        event,
        json.dumps(normalized_fields, sort_keys=True, separators=(",", ":")),
    )
