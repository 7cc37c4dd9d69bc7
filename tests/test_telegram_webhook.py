from fastapi.testclient import TestClient

from qrsync.gateway.messages import (
    ABOUT_MESSAGE,
    APP_MESSAGE,
    CONTACT_DECODED_MESSAGE,
    DECODING_MESSAGE,
    EMPTY_RESULT_MESSAGE,
    ERROR_MESSAGE,
    START_MESSAGE,
    TEXT_DECODED_MESSAGE,
)
from qrsync.main import create_app
from qrsync.markers.inmemory import InMemoryMarkerStore
from tests.conftest import WEBHOOK_PATH, WEBHOOK_SECRET_HEADER
from tests.fakes import FakeDecoders, FakeTelegramBot, photo_update, text_update

MARKER_KEY = "latest_update_id"


def _post(client, payload, **kwargs):
    return client.post(WEBHOOK_PATH, headers=WEBHOOK_SECRET_HEADER, json=payload, **kwargs)


def test_webhook_rejects_missing_secret(client, fake_bot, marker_store) -> None:
    """Webhook rejects requests without the configured Telegram secret header."""
    response = client.post(WEBHOOK_PATH, json=text_update(update_id=1, text="/start"))
    assert response.status_code == 401
    assert response.json() == {
        "error": {
            "code": "TELEGRAM_WEBHOOK_UNAUTHORIZED",
            "message": "Invalid Telegram webhook secret",
        }
    }
    assert fake_bot.actions == []
    assert marker_store.get(MARKER_KEY) is None


def test_webhook_rejects_invalid_secret(client, fake_bot) -> None:
    response = client.post(
        WEBHOOK_PATH,
        headers={"X-Telegram-Bot-Api-Secret-Token": "wrong-secret"},
        json=text_update(update_id=2, text="/start"),
    )
    assert response.status_code == 401
    assert fake_bot.actions == []


def test_webhook_returns_503_when_secret_not_configured_and_insecure_not_allowed(client) -> None:
    """Webhook should fail closed when secret is missing and insecure mode is disabled."""
    client.app.state.settings.telegram_webhook_secret = None
    client.app.state.settings.allow_insecure_telegram_webhook = False
    response = client.post(WEBHOOK_PATH, json=text_update(update_id=3, text="/start"))
    assert response.status_code == 503
    assert response.json()["error"]["code"] == "TELEGRAM_WEBHOOK_MISCONFIGURED"


def test_webhook_allows_missing_secret_in_insecure_mode(client, fake_bot) -> None:
    client.app.state.settings.telegram_webhook_secret = None
    client.app.state.settings.allow_insecure_telegram_webhook = True
    response = client.post(WEBHOOK_PATH, json=text_update(update_id=4, text="/start"))
    assert response.status_code == 200
    assert response.json()["status"] == "processed"
    assert len(fake_bot.actions) == 1


def test_about_command_advances_marker_and_replies_once(client, fake_bot, marker_store) -> None:
    response = _post(client, text_update(update_id=100, text="/about", chat_id=55))

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "status": "processed",
        "update_id": 100,
        "duplicate": False,
    }
    assert marker_store.get(MARKER_KEY) == 100
    assert fake_bot.actions == [
        {
            "method": "sendMessage",
            "chat_id": 55,
            "text": ABOUT_MESSAGE,
            "parse_mode": "Markdown",
            "reply_to_message_id": None,
        }
    ]


def test_each_command_maps_to_one_fixed_message(client, fake_bot) -> None:
    for update_id, command in enumerate(["/start", "/about", "/app"], start=10):
        assert _post(client, text_update(update_id=update_id, text=command)).status_code == 200

    assert [action["text"] for action in fake_bot.actions] == [
        START_MESSAGE,
        ABOUT_MESSAGE,
        APP_MESSAGE,
    ]


def test_unknown_text_is_acknowledged_without_replies(client, fake_bot, marker_store) -> None:
    response = _post(client, text_update(update_id=20, text="hello there"))

    assert response.status_code == 200
    assert response.json()["status"] == "ignored"
    assert fake_bot.actions == []
    assert marker_store.get(MARKER_KEY) == 20


def test_duplicate_delivery_is_skipped_silently(client, fake_bot, marker_store) -> None:
    """Same update_id must not produce a second set of replies."""
    payload = text_update(update_id=101, text="/start")

    first = _post(client, payload)
    second = _post(client, payload)

    assert first.json()["status"] == "processed"
    assert second.status_code == 200
    assert second.json() == {
        "ok": True,
        "status": "duplicate",
        "update_id": 101,
        "duplicate": True,
    }
    assert len(fake_bot.actions) == 1
    assert marker_store.get(MARKER_KEY) == 101


def test_older_update_after_newer_one_is_skipped(client, fake_bot, marker_store) -> None:
    assert _post(client, text_update(update_id=300, text="/start")).json()["status"] == "processed"
    late = _post(client, text_update(update_id=299, text="/about"))

    assert late.json()["status"] == "duplicate"
    assert marker_store.get(MARKER_KEY) == 300
    assert [action["text"] for action in fake_bot.actions] == [START_MESSAGE]


def test_duplicate_notification_can_be_enabled(monkeypatch) -> None:
    monkeypatch.setenv("DUPLICATE_UPDATE_NOTIFY", "true")
    bot = FakeTelegramBot()
    decoders = FakeDecoders()
    app = create_app(
        telegram_bot=bot,
        marker_store=InMemoryMarkerStore({MARKER_KEY: 500}),
        image_decoder=decoders.decode_image,
        barcode_decoder=decoders.decode_barcode,
    )
    with TestClient(app) as client:
        response = _post(client, text_update(update_id=500, text="/start", chat_id=9))

    assert response.json()["status"] == "duplicate"
    assert bot.actions == [
        {
            "method": "sendMessage",
            "chat_id": 9,
            "text": ERROR_MESSAGE,
            "parse_mode": None,
            "reply_to_message_id": None,
        }
    ]


def test_message_without_text_or_photo_is_a_noop(client, fake_bot, marker_store) -> None:
    payload = {
        "update_id": 40,
        "message": {"message_id": 1, "chat": {"id": 1}, "sticker": {"file_id": "x"}},
    }
    response = _post(client, payload)

    assert response.json()["status"] == "ignored"
    assert fake_bot.actions == []
    assert marker_store.get(MARKER_KEY) == 40


def test_update_without_message_still_advances_marker(client, fake_bot, marker_store) -> None:
    response = _post(client, {"update_id": 41, "edited_message": {"message_id": 1}})

    assert response.json() == {
        "ok": True,
        "status": "ignored",
        "update_id": 41,
        "duplicate": False,
    }
    assert marker_store.get(MARKER_KEY) == 41
    assert fake_bot.actions == []


def test_oversized_photo_gets_size_limit_reply_without_download(
    client, fake_bot, fake_decoders, marker_store
) -> None:
    response = _post(client, photo_update(update_id=101, sizes=[(320, 240), (2000, 1000)]))

    assert response.json()["status"] == "processed"
    assert marker_store.get(MARKER_KEY) == 101
    assert [action["text"] for action in fake_bot.actions] == [
        "I'm sorry, I will only decode images up to 1280x1280."
    ]
    assert fake_decoders.image_inputs == []


def test_photo_with_text_payload_announces_then_replies(
    client, fake_bot, fake_decoders
) -> None:
    fake_decoders.payload = "https://example.com/some_path"
    response = _post(
        client,
        photo_update(update_id=60, sizes=[(90, 90), (800, 800)], chat_id=77, message_id=12),
    )

    assert response.json()["status"] == "processed"
    assert fake_bot.actions[0]["method"] == "sendMessage"
    assert fake_bot.actions[0]["text"] == DECODING_MESSAGE
    assert fake_bot.actions[1] == {"method": "downloadFile", "file_id": "file-800x800"}
    assert fake_bot.actions[2:] == [
        {
            "method": "sendMessage",
            "chat_id": 77,
            "text": TEXT_DECODED_MESSAGE,
            "parse_mode": "Markdown",
            "reply_to_message_id": None,
        },
        {
            "method": "sendMessage",
            "chat_id": 77,
            "text": "https://example.com/some_path",
            "parse_mode": None,
            "reply_to_message_id": 12,
        },
    ]
    assert fake_decoders.image_inputs == [fake_bot.file_bytes]
    assert all(not path.exists() for path in fake_bot.downloaded_paths)


def test_photo_with_vcard_payload_sends_contact(client, fake_bot, fake_decoders) -> None:
    vcard = "BEGIN:VCARD\nVERSION:3.0\nFN:Ada Lovelace\nTEL;TYPE=cell:+44 20 1234\nEND:VCARD"
    fake_decoders.payload = vcard
    _post(client, photo_update(update_id=61, sizes=[(640, 480)], chat_id=5, message_id=3))

    replies = fake_bot.replies()
    assert [reply["method"] for reply in replies] == ["sendMessage", "sendMessage", "sendContact"]
    assert replies[1]["text"] == CONTACT_DECODED_MESSAGE
    assert replies[2] == {
        "method": "sendContact",
        "chat_id": 5,
        "phone_number": "+44 20 1234",
        "first_name": "Ada Lovelace",
        "vcard": vcard,
        "reply_to_message_id": 3,
    }


def test_photo_without_code_replies_could_not_decode(client, fake_bot, fake_decoders) -> None:
    fake_decoders.payload = ""
    _post(client, photo_update(update_id=62, sizes=[(640, 480)], message_id=31))

    replies = fake_bot.replies()
    assert [reply["text"] for reply in replies] == [DECODING_MESSAGE, EMPTY_RESULT_MESSAGE]
    assert replies[1]["reply_to_message_id"] == 31


def test_collaborator_failure_sends_generic_error_and_returns_200(
    client, fake_bot, fake_decoders, marker_store
) -> None:
    fake_decoders.barcode_error = RuntimeError("decoder crashed")
    response = _post(client, photo_update(update_id=63, sizes=[(640, 480)], chat_id=8))

    assert response.status_code == 200
    assert response.json()["status"] == "failed"
    assert fake_bot.replies()[-1] == {
        "method": "sendMessage",
        "chat_id": 8,
        "text": ERROR_MESSAGE,
        "parse_mode": None,
        "reply_to_message_id": None,
    }
    assert all(not path.exists() for path in fake_bot.downloaded_paths)
    # The marker advanced before processing, so a redelivery is not retried.
    assert marker_store.get(MARKER_KEY) == 63
    assert _post(client, photo_update(update_id=63, sizes=[(640, 480)])).json()["status"] == (
        "duplicate"
    )


def test_failure_to_send_error_message_is_swallowed(client, fake_bot) -> None:
    fake_bot.failing_methods.add("sendMessage")
    response = _post(client, text_update(update_id=64, text="/start"))

    assert response.status_code == 200
    assert response.json()["status"] == "failed"
    assert fake_bot.actions == []


def test_malformed_payload_is_acknowledged_and_reported_to_chat(
    client, fake_bot, marker_store
) -> None:
    payload = {"update_id": "not-a-number", "message": {"chat": {"id": 99}}}
    response = _post(client, payload)

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "status": "invalid",
        "update_id": None,
        "duplicate": False,
    }
    assert [(a["chat_id"], a["text"]) for a in fake_bot.actions] == [(99, ERROR_MESSAGE)]
    assert marker_store.get(MARKER_KEY) is None


def test_non_json_body_is_acknowledged(client, fake_bot) -> None:
    response = client.post(
        WEBHOOK_PATH,
        headers={**WEBHOOK_SECRET_HEADER, "Content-Type": "application/json"},
        content=b"{not json",
    )

    assert response.status_code == 200
    assert response.json()["status"] == "invalid"
    assert fake_bot.actions == []


def test_response_carries_request_id_header(client) -> None:
    response = client.post(
        WEBHOOK_PATH,
        headers={**WEBHOOK_SECRET_HEADER, "X-Request-ID": "req-123"},
        json=text_update(update_id=70, text="/start"),
    )
    assert response.headers["X-Request-ID"] == "req-123"


def test_malformed_update_with_id_is_reported_once(client, fake_bot, marker_store) -> None:
    """A redelivered malformed update must not produce a second error reply."""
    payload = {
        "update_id": 500,
        "message": {"message_id": 1, "chat": {"id": 9}, "photo": [{"file_id": "x"}]},
    }

    first = _post(client, payload)
    second = _post(client, payload)

    assert first.json() == {
        "ok": True,
        "status": "invalid",
        "update_id": 500,
        "duplicate": False,
    }
    assert second.json() == {
        "ok": True,
        "status": "duplicate",
        "update_id": 500,
        "duplicate": True,
    }
    assert [(a["chat_id"], a["text"]) for a in fake_bot.actions] == [(9, ERROR_MESSAGE)]
    assert marker_store.get(MARKER_KEY) == 500


def test_malformed_update_older_than_marker_is_skipped(client, fake_bot, marker_store) -> None:
    assert _post(client, text_update(update_id=600, text="/start")).status_code == 200
    response = _post(client, {"update_id": 599, "message": {"chat": {"id": 9}}})

    assert response.json()["status"] == "duplicate"
    assert [action["text"] for action in fake_bot.actions] == [START_MESSAGE]
    assert marker_store.get(MARKER_KEY) == 600
