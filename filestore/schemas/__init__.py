"""Schemas for stored files, images, and the files API."""

from filestore.schemas.domain import (
    AvatarResult,
    ImageMetadata,
    ProcessedImage,
    StoredFile,
    UserContext,
)

__all__ = [
    "AvatarResult",
    "ImageMetadata",
    "ProcessedImage",
    "StoredFile",
    "UserContext",
]
