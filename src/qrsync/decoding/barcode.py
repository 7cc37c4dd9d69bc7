"""QR code detection over grayscale bitmaps."""

from __future__ import annotations

import logging

from qrsync.decoding.image import Bitmap

logger = logging.getLogger(__name__)


def decode_barcode(bitmap: Bitmap) -> str:
    """Return the first QR code payload in `bitmap`, or "" when none is found."""
    # pyzbar loads the zbar shared library at import time.
    from pyzbar.pyzbar import ZBarSymbol, decode

    symbols = decode(
        (bitmap.pixels, bitmap.width, bitmap.height),
        symbols=[ZBarSymbol.QRCODE],
    )
    if not symbols:
        return ""
    if len(symbols) > 1:
        logger.info("Found %s QR codes in one image; using the first", len(symbols))
    return symbols[0].data.decode("utf-8", errors="replace")
