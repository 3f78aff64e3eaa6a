"""Image uploads on top of a blob storage backend."""

from __future__ import annotations

import logging

from filestore.schemas.domain import AvatarResult, ImageMetadata
from filestore.storage.contracts import BlobStorage, ImageProcessor

logger = logging.getLogger(__name__)


class ImageStorageAdapter:
    """Composes a storage backend with an image processor for avatar flows."""

    def __init__(self, storage: BlobStorage, processor: ImageProcessor):
        self._storage = storage
        self._processor = processor

    async def upload_image(
        self,
        *,
        user_id: str,
        buffer: bytes,
        file_name: str,
        base_path: str | None = None,
        container_name: str | None = None,
    ) -> str:
        try:
            return await self._storage.save_buffer(
                user_id=user_id,
                buffer=buffer,
                file_name=file_name,
                base_path=base_path,
                container_name=container_name,
            )
        except Exception:
            logger.exception("[upload_image] Error uploading image %s", file_name)
            raise

    async def prepare_image_url(
        self,
        *,
        file_name: str,
        base_path: str | None = None,
        user_id: str | None = None,
        container_name: str | None = None,
    ) -> str:
        try:
            return await self._storage.get_url(
                file_name=file_name,
                base_path=base_path,
                user_id=user_id,
                container_name=container_name,
            )
        except Exception:
            logger.exception("[prepare_image_url] Error preparing URL for %s", file_name)
            raise

    async def process_avatar(
        self,
        *,
        user_id: str,
        buffer: bytes,
        file_name: str,
        base_path: str | None = None,
        container_name: str | None = None,
    ) -> AvatarResult:
        """Normalize an avatar image, upload it and return its URL and metadata."""
        try:
            processed = await self._processor.process(buffer)
            url = await self._storage.save_buffer(
                user_id=user_id,
                buffer=processed.buffer,
                file_name=file_name,
                base_path=base_path,
                container_name=container_name,
            )
            metadata = processed.metadata
            return AvatarResult(
                url=url,
                metadata=ImageMetadata(type=metadata.type, width=metadata.width, height=metadata.height),
            )
        except Exception:
            logger.exception("[process_avatar] Error processing avatar for user %s", user_id)
            raise


__all__ = ["ImageStorageAdapter"]
