"""Business logic services."""

from filestore.services.image_processor import (
    ImageProcessingError,
    PillowImageProcessor,
    normalize_image,
)

__all__ = [
    "ImageProcessingError",
    "PillowImageProcessor",
    "normalize_image",
]
