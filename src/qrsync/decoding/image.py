"""Image bytes to grayscale bitmap conversion."""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from qrsync.core.exceptions import ImageDecodeError


@dataclass(frozen=True)
class Bitmap:
    """8-bit grayscale pixel buffer, row-major, one byte per pixel."""

    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError("Bitmap dimensions must be positive")
        if len(self.pixels) != self.width * self.height:
            raise ValueError(
                f"Bitmap buffer holds {len(self.pixels)} bytes, "
                f"expected {self.width * self.height}"
            )


def decode_image(data: bytes) -> Bitmap:
    """Decode JPEG/PNG/WebP bytes into a grayscale bitmap."""
    if not data:
        raise ImageDecodeError("Image payload is empty")

    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_GRAYSCALE)
    if image is None:
        raise ImageDecodeError("Image payload is not a supported image format")

    height, width = image.shape[:2]
    return Bitmap(width=width, height=height, pixels=np.ascontiguousarray(image).tobytes())
