"""Domain models for stored files and images."""

from typing import Optional

from pydantic import BaseModel, Field


class UserContext(BaseModel):
    """The authenticated user a storage call is made on behalf of."""

    id: str = Field(min_length=1)


class StoredFile(BaseModel):
    """A previously stored blob as the application records it."""

    filepath: str
    bytes: Optional[int] = None


class ImageMetadata(BaseModel):
    """Format and dimensions of a processed image."""

    type: str
    width: int
    height: int


class ProcessedImage(BaseModel):
    """Normalized image buffer returned by an image processor."""

    buffer: bytes
    metadata: ImageMetadata


class AvatarResult(BaseModel):
    """Access URL and metadata of an uploaded avatar."""

    url: str
    metadata: ImageMetadata
