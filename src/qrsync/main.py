import asyncio
import inspect
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from qrsync.api.middleware import RequestCorrelationMiddleware
from qrsync.api.routes.system import router as system_router
from qrsync.api.routes.telegram import router as telegram_router
from qrsync.core.config import Settings, get_settings
from qrsync.core.logging import configure_logging
from qrsync.db.session import build_engine, build_session_factory, create_schema
from qrsync.decoding.barcode import decode_barcode
from qrsync.decoding.image import decode_image
from qrsync.decoding.vcard import parse_vcard
from qrsync.gateway.dispatcher import UpdateDispatcher
from qrsync.gateway.idempotency import IdempotencyGate
from qrsync.gateway.photos import BarcodeDecoder, ImageDecoder, PhotoDecodeHandler
from qrsync.markers.base import MarkerStore
from qrsync.markers.factory import create_marker_store
from qrsync.telegram.base import TelegramBot
from qrsync.telegram.client import TelegramClient

logger = logging.getLogger(__name__)
RESOURCE_CLOSE_TIMEOUT_SECONDS = 5
RESOURCE_CLOSE_EXCEPTIONS = (RedisError, SQLAlchemyError, RuntimeError, OSError)


async def _close_resource(resource: object) -> None:
    """Close a stateful resource by trying common shutdown method names."""
    for method_name in ("aclose", "close"):
        method = getattr(resource, method_name, None)
        if not callable(method):
            continue

        try:
            result = method()
            if inspect.isawaitable(result):
                await asyncio.wait_for(result, timeout=RESOURCE_CLOSE_TIMEOUT_SECONDS)
        except TimeoutError:
            logger.warning(
                "Timed out closing resource via '%s' after %s seconds",
                method_name,
                RESOURCE_CLOSE_TIMEOUT_SECONDS,
            )
        except RESOURCE_CLOSE_EXCEPTIONS:
            logger.exception("Failed to close resource via '%s'", method_name)
        return


def _build_telegram_client(settings: Settings) -> TelegramClient:
    if settings.telegram_bot_token is None:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is required to reply to Telegram updates")
    return TelegramClient(
        settings.telegram_bot_token.get_secret_value(),
        base_url=settings.telegram_api_base_url,
        timeout_seconds=settings.telegram_timeout_seconds,
    )


def create_app(
    *,
    telegram_bot: TelegramBot | None = None,
    marker_store: MarkerStore | None = None,
    image_decoder: ImageDecoder = decode_image,
    barcode_decoder: BarcodeDecoder = decode_barcode,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators default to the production implementations; tests pass fakes.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    is_local_environment = settings.is_local_environment

    async def _release(app: FastAPI, bot: object | None, store: object | None) -> None:
        """Close the resources this app created itself; injected ones are left alone."""
        if telegram_bot is None and bot is not None:
            await _close_resource(bot)
        app.state.telegram_bot = None
        if marker_store is None and store is not None:
            await _close_resource(store)
        app.state.marker_store = None
        engine = app.state.db_engine
        if engine is not None:
            try:
                engine.dispose()
            except (RuntimeError, OSError, SQLAlchemyError):
                logger.exception("Failed to dispose database engine")
        app.state.db_engine = None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Build long-lived clients once and share them across invocations."""
        app.state.settings = settings
        app.state.db_engine = None
        bot = telegram_bot if telegram_bot is not None else _build_telegram_client(settings)
        app.state.telegram_bot = bot
        store = marker_store
        try:
            if store is None:
                session_factory = None
                if settings.marker_backend == "database":
                    app.state.db_engine = build_engine(settings.database_url.get_secret_value())
                    if is_local_environment:
                        create_schema(app.state.db_engine)
                    session_factory = build_session_factory(app.state.db_engine)
                store = create_marker_store(settings, session_factory=session_factory)
        except Exception:
            await _release(app, bot, store)
            raise
        app.state.marker_store = store

        app.state.dispatcher = UpdateDispatcher(
            bot=bot,
            gate=IdempotencyGate(store, key=settings.marker_key),
            photo_handler=PhotoDecodeHandler(
                bot=bot,
                image_decoder=image_decoder,
                barcode_decoder=barcode_decoder,
                contact_parser=parse_vcard,
                max_photo_size=settings.max_photo_size,
            ),
            notify_duplicates=settings.duplicate_update_notify,
        )
        try:
            yield
        finally:
            app.state.dispatcher = None
            await _release(app, bot, store)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if is_local_environment else None,
        redoc_url="/redoc" if is_local_environment else None,
        openapi_url="/openapi.json" if is_local_environment else None,
    )
    app.add_middleware(RequestCorrelationMiddleware)
    app.include_router(system_router)
    app.include_router(telegram_router)

    @app.get("/", tags=["meta"])
    def root() -> dict[str, str]:
        """Return basic service metadata."""
        payload = {
            "name": settings.app_name,
            "status": "ok",
        }
        if is_local_environment:
            payload["environment"] = settings.environment
        return payload

    return app


app = create_app()
