import os

import pytest
from fastapi.testclient import TestClient

# Ensure settings are resolved from test env before app modules import.
os.environ["ENVIRONMENT"] = "test"
os.environ["TELEGRAM_BOT_TOKEN"] = "123456:test-token"
os.environ["TELEGRAM_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["MARKER_BACKEND"] = "inmemory"
os.environ["MAX_PHOTO_SIZE"] = "1280"
os.environ["DUPLICATE_UPDATE_NOTIFY"] = "false"
os.environ["LOG_LEVEL"] = "INFO"

from qrsync.core.config import get_settings  # noqa: E402
from qrsync.markers.inmemory import InMemoryMarkerStore  # noqa: E402
from tests.fakes import FakeDecoders, FakeTelegramBot  # noqa: E402

WEBHOOK_PATH = "/telegram/webhook"
WEBHOOK_SECRET_HEADER = {"X-Telegram-Bot-Api-Secret-Token": "test-webhook-secret"}


@pytest.fixture(autouse=True)
def reset_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_bot() -> FakeTelegramBot:
    return FakeTelegramBot()


@pytest.fixture
def fake_decoders() -> FakeDecoders:
    return FakeDecoders()


@pytest.fixture
def marker_store() -> InMemoryMarkerStore:
    return InMemoryMarkerStore()


@pytest.fixture
def client(fake_bot, fake_decoders, marker_store):
    from qrsync.main import create_app

    app = create_app(
        telegram_bot=fake_bot,
        marker_store=marker_store,
        image_decoder=fake_decoders.decode_image,
        barcode_decoder=fake_decoders.decode_barcode,
    )
    with TestClient(app) as test_client:
        yield test_client
