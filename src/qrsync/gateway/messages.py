"""User-facing reply texts."""

START_MESSAGE = "Hi, I'm QR Sync Bot! I can decode your QR codes."
ABOUT_MESSAGE = (
    "I was created by @emilioschepis. You can find my code on "
    "[GitHub](https://github.com/emilioschepis/qr-sync-telegram-bot)."
)
APP_MESSAGE = (
    "*QR Sync* keeps your scans in sync. Send me a photo of any QR code "
    "and I'll reply with what it contains."
)
DECODING_MESSAGE = "Give me a second, I'm decoding your photo..."
EMPTY_RESULT_MESSAGE = "The code you sent could not be decoded."
TEXT_DECODED_MESSAGE = "*I decoded your QR code!*\nHere's the text it contains:"
CONTACT_DECODED_MESSAGE = "*I decoded your QR code!*\nHere's the contact it contains:"
ERROR_MESSAGE = "There was a problem with your request."


def size_limit_message(limit: int) -> str:
    return f"I'm sorry, I will only decode images up to {limit}x{limit}."
