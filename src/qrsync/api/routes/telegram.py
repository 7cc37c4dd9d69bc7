"""Telegram webhook ingress route."""

import hmac
import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from qrsync.api.dependencies import get_dispatcher, get_request_settings
from qrsync.api.schemas.errors import ErrorResponse
from qrsync.api.schemas.telegram import TelegramUpdate, TelegramWebhookAck, WebhookOutcome
from qrsync.core.config import Settings
from qrsync.core.observability import log_event
from qrsync.gateway.dispatcher import UpdateDispatcher, update_id_from_raw_update

router = APIRouter(prefix="/telegram", tags=["telegram"])
logger = logging.getLogger(__name__)


def _error_response(*, status_code: int, code: str, message: str) -> JSONResponse:
    """Build a typed error payload for requests rejected before dispatch."""
    payload = ErrorResponse.model_validate({"error": {"code": code, "message": message}})
    return JSONResponse(status_code=status_code, content=payload.model_dump(mode="json"))


def _authenticate(settings: Settings, webhook_secret: str | None) -> JSONResponse | None:
    """Return a rejection response, or None when the caller may proceed."""
    expected_secret = settings.telegram_webhook_secret
    if expected_secret is None:
        if not settings.allow_insecure_telegram_webhook:
            return _error_response(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                code="TELEGRAM_WEBHOOK_MISCONFIGURED",
                message=(
                    "TELEGRAM_WEBHOOK_SECRET is required unless "
                    "ALLOW_INSECURE_TELEGRAM_WEBHOOK=true"
                ),
            )
        logger.warning(
            "TELEGRAM_WEBHOOK_SECRET is not configured; /telegram/webhook is explicitly running "
            "without authentication because ALLOW_INSECURE_TELEGRAM_WEBHOOK=true"
        )
        return None
    if not hmac.compare_digest(webhook_secret or "", expected_secret.get_secret_value()):
        return _error_response(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="TELEGRAM_WEBHOOK_UNAUTHORIZED",
            message="Invalid Telegram webhook secret",
        )
    return None


@router.post(
    "/webhook",
    response_model=TelegramWebhookAck,
    responses={
        401: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def telegram_webhook(
    request: Request,
    settings: Annotated[Settings, Depends(get_request_settings)],
    dispatcher: Annotated[UpdateDispatcher, Depends(get_dispatcher)],
    webhook_secret: Annotated[str | None, Header(alias="X-Telegram-Bot-Api-Secret-Token")] = None,
) -> TelegramWebhookAck | JSONResponse:
    """Process one Telegram update; authenticated calls are always acknowledged with 200."""
    rejection = _authenticate(settings, webhook_secret)
    if rejection is not None:
        return rejection

    raw_body = await request.body()
    try:
        raw_update = json.loads(raw_body)
    except (UnicodeDecodeError, ValueError):
        raw_update = None

    try:
        update = TelegramUpdate.model_validate(raw_update)
    except ValidationError as exc:
        log_event(
            logger,
            level=logging.WARNING,
            event="telegram.webhook.rejected_payload",
            errors=exc.error_count(),
        )
        outcome = await dispatcher.dispatch_invalid(raw_update)
        return TelegramWebhookAck(
            status=outcome,
            update_id=update_id_from_raw_update(raw_update),
            duplicate=outcome is WebhookOutcome.DUPLICATE,
        )

    outcome = await dispatcher.dispatch(update)
    return TelegramWebhookAck(
        status=outcome,
        update_id=update.update_id,
        duplicate=outcome is WebhookOutcome.DUPLICATE,
    )
