"""Image helpers shared by the capture and notification modules."""

from __future__ import annotations

import base64
import io
import logging

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


def png_to_base64(data: bytes) -> str:
    """Encode raw PNG bytes as base64 text for mail attachments."""
    return base64.b64encode(data).decode("ascii")


def image_size(data: bytes) -> tuple[int, int]:
    """Return (width, height) of an encoded image.

    Raises:
        ValueError: If the bytes are not a decodable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Not a decodable image ({len(data)} bytes)") from e
