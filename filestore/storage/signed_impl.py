"""Azure Blob backend that hands out signed URLs instead of credentials.

The shared account key stays in this process. Uploads and stream reads go
through per-blob URLs carrying a freshly minted grant: write-only for the
upload, read-only for what the caller gets back. Container management and
deletes use the key-authenticated SDK client.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import AsyncIterator, Callable

import httpx

from filestore.schemas.domain import StoredFile, UserContext
from filestore.storage.clients import AzureClients
from filestore.storage.contracts import BlobStorage, StorageConfigError
from filestore.storage.paths import (
    DEFAULT_BASE_PATH,
    blob_path_from_url,
    build_blob_path,
    guess_content_type,
    local_file_name,
    require_owner,
)
from filestore.storage.remote import fetch_bytes, open_url_stream, put_blob, put_blob_from_file
from filestore.storage.sas import DEFAULT_GRANT_MINUTES, CapabilityGrant, Permission, mint_grant

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SignedURLBlobStorage(BlobStorage):
    """Blob storage authenticated by shared key, exposing only signed URLs."""

    def __init__(
        self,
        account_name: str,
        account_key: str,
        container_name: str = "files",
        *,
        endpoint: str | None = None,
        base_path: str = DEFAULT_BASE_PATH,
        grant_minutes: int = DEFAULT_GRANT_MINUTES,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._account_key = account_key
        self._clients = AzureClients(
            account_name, container_name, self._shared_key_credential, endpoint=endpoint
        )
        self._base_path = base_path
        self._grant_minutes = grant_minutes
        self._transport = transport
        self._clock = clock

    def _shared_key_credential(self) -> dict[str, str]:
        if not self._account_key:
            raise StorageConfigError(
                "init",
                self._clients.container_name,
                None,
                "missing required configuration; provide AZURE_STORAGE_ACCOUNT_KEY",
            )
        return {"account_name": self._clients.account_name, "account_key": self._account_key}

    @property
    def container_name(self) -> str:
        return self._clients.container_name

    # -------------
    # Grant minting
    # -------------
    def mint(
        self,
        blob_path: str,
        permission: Permission,
        container_name: str | None = None,
        duration_minutes: int | None = None,
    ) -> CapabilityGrant:
        """Mint a fresh single-permission grant for one blob."""
        self._clients.service()
        return mint_grant(
            blob_path=blob_path,
            account_name=self._clients.account_name,
            account_key=self._account_key,
            container_name=container_name or self.container_name,
            permission=permission,
            duration_minutes=duration_minutes or self._grant_minutes,
            now=self._clock(),
        )

    def signed_url(
        self,
        blob_path: str,
        permission: Permission,
        container_name: str | None = None,
    ) -> str:
        grant = self.mint(blob_path, permission, container_name)
        return grant.apply(self._clients.blob_url(blob_path, container_name))

    # -------------------
    # BlobStorage methods
    # -------------------
    async def save_buffer(
        self,
        *,
        user_id: str,
        buffer: bytes,
        file_name: str,
        base_path: str | None = None,
        container_name: str | None = None,
    ) -> str:
        try:
            await self._clients.ensure_container(container_name)
            blob_path = build_blob_path(
                file_name, base_path=base_path or self._base_path, user_id=user_id
            )
            upload_url = self.signed_url(blob_path, Permission.WRITE, container_name)
            await put_blob(
                upload_url,
                buffer,
                content_type=guess_content_type(file_name),
                transport=self._transport,
            )
            return self.signed_url(blob_path, Permission.READ, container_name)
        except Exception:
            logger.exception("[save_buffer] Error uploading buffer %s", file_name)
            raise

    async def save_url(
        self,
        *,
        user_id: str,
        url: str,
        file_name: str,
        base_path: str | None = None,
        container_name: str | None = None,
    ) -> str:
        try:
            buffer = await fetch_bytes(url, transport=self._transport)
        except Exception:
            logger.exception("[save_url] Error fetching %s", url)
            raise
        return await self.save_buffer(
            user_id=user_id,
            buffer=buffer,
            file_name=file_name,
            base_path=base_path,
            container_name=container_name,
        )

    async def get_url(
        self,
        *,
        file_name: str,
        base_path: str | None = None,
        user_id: str | None = None,
        container_name: str | None = None,
    ) -> str:
        try:
            blob_path = build_blob_path(
                file_name, base_path=base_path or self._base_path, user_id=user_id
            )
            return self.signed_url(blob_path, Permission.READ, container_name)
        except Exception:
            logger.exception("[get_url] Error signing URL for %s", file_name)
            raise

    async def delete_file(self, user: UserContext, file: StoredFile) -> None:
        try:
            self._clients.service()
            blob_path = blob_path_from_url(file.filepath, self.container_name)
            require_owner(blob_path, user.id, container_name=self.container_name)
            if await self._clients.delete_blob(blob_path):
                logger.debug("[delete_file] Deleted blob %s", blob_path)
        except Exception:
            logger.exception("[delete_file] Error deleting %s", file.filepath)
            raise

    async def upload_local_file(
        self,
        *,
        user: UserContext,
        local_path: str,
        file_id: str,
        base_path: str | None = None,
        container_name: str | None = None,
    ) -> StoredFile:
        try:
            size = os.stat(local_path).st_size
            file_name = local_file_name(file_id, local_path)
            blob_path = build_blob_path(
                file_name, base_path=base_path or self._base_path, user_id=user.id
            )
            await self._clients.ensure_container(container_name)
            upload_url = self.signed_url(blob_path, Permission.WRITE, container_name)
            await put_blob_from_file(
                upload_url,
                local_path,
                content_type=guess_content_type(file_name),
                size=size,
                transport=self._transport,
            )
            download_url = self.signed_url(blob_path, Permission.READ, container_name)
            return StoredFile(filepath=download_url, bytes=size)
        except Exception:
            logger.exception("[upload_local_file] Error uploading %s", local_path)
            raise

    async def open_stream(self, file_url: str) -> AsyncIterator[bytes]:
        # Stored URLs carry grants that have long expired; sign a new one
        try:
            blob_path = blob_path_from_url(file_url, self.container_name)
            read_url = self.signed_url(blob_path, Permission.READ)
            return await open_url_stream(read_url, transport=self._transport)
        except Exception:
            logger.exception("[open_stream] Error opening stream for %s", file_url)
            raise

    async def close(self) -> None:
        await self._clients.close()


__all__ = ["SignedURLBlobStorage"]
