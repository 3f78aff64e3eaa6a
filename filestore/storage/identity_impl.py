"""Azure Blob backend authenticated with workload identity.

Every call goes through the authenticated SDK client. Returned URLs are plain
blob URLs; access to them is governed by network and identity policy, not by
anything embedded in the URL.
"""

from __future__ import annotations

import logging
import os
from typing import AsyncIterator

import httpx
from azure.core.exceptions import ClientAuthenticationError
from azure.identity.aio import WorkloadIdentityCredential
from azure.storage.blob import ContentSettings

from filestore.schemas.domain import StoredFile, UserContext
from filestore.storage.clients import AzureClients
from filestore.storage.contracts import BlobStorage, StorageAuthenticationError
from filestore.storage.paths import (
    DEFAULT_BASE_PATH,
    blob_path_from_url,
    build_blob_path,
    guess_content_type,
    local_file_name,
    require_owner,
)
from filestore.storage.remote import fetch_bytes

logger = logging.getLogger(__name__)


def workload_identity_credential() -> WorkloadIdentityCredential:
    """Build the workload identity credential from the pod environment."""
    try:
        return WorkloadIdentityCredential()
    except ValueError as exc:
        raise StorageAuthenticationError(
            "init",
            None,
            None,
            "workload identity is not configured; ensure the pod runs with Workload "
            f"Identity enabled and AZURE_CLIENT_ID/AZURE_TENANT_ID/AZURE_FEDERATED_TOKEN_FILE set ({exc})",
        ) from exc


def _log_failure(op: str, exc: BaseException) -> None:
    if isinstance(exc, ClientAuthenticationError):
        logger.error("[%s] Workload identity credential rejected by Azure: %s", op, exc)
    else:
        logger.exception("[%s] Azure Blob operation failed", op)


class IdentityBlobStorage(BlobStorage):
    """Blob storage using an ambient workload identity and unsigned URLs."""

    def __init__(
        self,
        account_name: str,
        container_name: str = "files",
        *,
        endpoint: str | None = None,
        base_path: str = DEFAULT_BASE_PATH,
        transport: httpx.AsyncBaseTransport | None = None,
        credential_factory=workload_identity_credential,
    ):
        self._clients = AzureClients(
            account_name, container_name, credential_factory, endpoint=endpoint
        )
        self._base_path = base_path
        self._transport = transport

    @property
    def container_name(self) -> str:
        return self._clients.container_name

    # --------------
    # Direct uploads
    # --------------
    async def upload_buffer_directly(
        self,
        blob_path: str,
        buffer: bytes,
        content_type: str,
        container_name: str | None = None,
    ) -> None:
        blob = self._clients.container(container_name).get_blob_client(blob_path)
        await blob.upload_blob(
            buffer,
            length=len(buffer),
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )

    async def upload_file_directly(
        self,
        blob_path: str,
        local_path: str,
        size: int,
        container_name: str | None = None,
    ) -> None:
        blob = self._clients.container(container_name).get_blob_client(blob_path)
        with open(local_path, "rb") as fh:
            await blob.upload_blob(
                fh,
                length=size,
                overwrite=True,
                content_settings=ContentSettings(content_type=guess_content_type(local_path)),
            )

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
            await self.upload_buffer_directly(
                blob_path, buffer, guess_content_type(file_name), container_name
            )
            return self._clients.blob_url(blob_path, container_name)
        except Exception as exc:
            _log_failure("save_buffer", exc)
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
            self._clients.service()
            blob_path = build_blob_path(
                file_name, base_path=base_path or self._base_path, user_id=user_id
            )
            return self._clients.blob_url(blob_path, container_name)
        except Exception:
            logger.exception("[get_url] Error resolving URL for %s", file_name)
            raise

    async def delete_file(self, user: UserContext, file: StoredFile) -> None:
        try:
            self._clients.service()
            blob_path = blob_path_from_url(file.filepath, self.container_name)
            require_owner(blob_path, user.id, container_name=self.container_name)
            if await self._clients.delete_blob(blob_path):
                logger.debug("[delete_file] Deleted blob %s", blob_path)
        except Exception as exc:
            _log_failure("delete_file", exc)
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
            self._clients.service()
            size = os.stat(local_path).st_size
            file_name = local_file_name(file_id, local_path)
            blob_path = build_blob_path(
                file_name, base_path=base_path or self._base_path, user_id=user.id
            )
            await self._clients.ensure_container(container_name)
            await self.upload_file_directly(blob_path, local_path, size, container_name)
            return StoredFile(filepath=self._clients.blob_url(blob_path, container_name), bytes=size)
        except Exception as exc:
            _log_failure("upload_local_file", exc)
            raise

    async def open_stream(self, file_url: str) -> AsyncIterator[bytes]:
        try:
            blob_path = blob_path_from_url(file_url, self.container_name)
            blob = self._clients.container().get_blob_client(blob_path)
            downloader = await blob.download_blob()
            return downloader.chunks()
        except Exception as exc:
            _log_failure("open_stream", exc)
            raise

    async def close(self) -> None:
        await self._clients.close()


__all__ = ["IdentityBlobStorage", "workload_identity_credential"]
