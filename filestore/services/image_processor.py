"""Avatar image normalization.

Decoding and resizing run in a worker thread so the event loop stays free.
"""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from filestore.schemas.domain import ImageMetadata, ProcessedImage

logger = logging.getLogger(__name__)

DEFAULT_AVATAR_SIZE = 250


class ImageProcessingError(Exception):
    """Raised when the input is not a decodable image."""

    pass


def normalize_image(data: bytes, *, max_size: int = DEFAULT_AVATAR_SIZE) -> ProcessedImage:
    """Downscale an image to fit ``max_size`` square and re-encode it as PNG.

    Args:
        data: Raw image bytes in any format Pillow can read.
        max_size: Longest allowed side in pixels. Smaller images keep their size.

    Returns:
        ProcessedImage with PNG bytes and the resulting type/width/height.

    Raises:
        ImageProcessingError: Empty, truncated or unsupported image data.
    """
    if not data:
        raise ImageProcessingError("empty image buffer")

    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA")
            img.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)

            output = BytesIO()
            img.save(output, format="PNG", optimize=True)
            width, height = img.size
    except UnidentifiedImageError as e:
        raise ImageProcessingError("unsupported image format") from e
    except (OSError, ValueError) as e:
        logger.warning("Image decode failed: %s", e)
        raise ImageProcessingError(f"failed to process image: {e}") from e

    return ProcessedImage(
        buffer=output.getvalue(),
        metadata=ImageMetadata(type="png", width=width, height=height),
    )


class PillowImageProcessor:
    """ImageProcessor backed by Pillow."""

    def __init__(self, max_size: int = DEFAULT_AVATAR_SIZE):
        self.max_size = max_size

    async def process(self, buffer: bytes) -> ProcessedImage:
        return await asyncio.to_thread(normalize_image, buffer, max_size=self.max_size)
