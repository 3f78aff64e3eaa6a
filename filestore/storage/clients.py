"""Lazily built Azure Blob client handles owned by one backend instance."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob.aio import BlobServiceClient, ContainerClient

from filestore.storage.contracts import StorageConfigError
from filestore.storage.paths import blob_url

logger = logging.getLogger(__name__)


def account_url_for(account_name: str, endpoint: str | None = None) -> str:
    """Blob service URL for an account, or the explicit endpoint when given."""
    if endpoint:
        return endpoint.rstrip("/")
    return f"https://{account_name}.blob.core.windows.net"


class AzureClients:
    """One service client and one default container client, built on first use.

    Construction is cheap and performs no I/O; configuration is validated and
    the SDK clients are created the first time any of them is needed. After
    that the handles are read-only and shared by concurrent operations.
    """

    def __init__(
        self,
        account_name: str,
        container_name: str,
        credential_factory: Callable[[], Any],
        *,
        endpoint: str | None = None,
    ):
        self.account_name = account_name
        self.container_name = container_name
        self._credential_factory = credential_factory
        self._endpoint = endpoint
        self._lock = threading.Lock()
        self._credential: Any = None
        self._service: BlobServiceClient | None = None
        self._container: ContainerClient | None = None

    @property
    def account_url(self) -> str:
        return account_url_for(self.account_name, self._endpoint)

    @property
    def initialized(self) -> bool:
        return self._service is not None

    def _check_config(self) -> None:
        if not self.account_name or not self.container_name:
            raise StorageConfigError(
                "init",
                self.container_name or None,
                None,
                "missing required configuration; provide AZURE_STORAGE_ACCOUNT_NAME "
                "and AZURE_CONTAINER_NAME",
            )

    def service(self) -> BlobServiceClient:
        """Return the shared service client, creating it once."""
        if self._service is None:
            with self._lock:
                if self._service is None:
                    self._check_config()
                    credential = self._credential_factory()
                    service = BlobServiceClient(self.account_url, credential=credential)
                    self._container = service.get_container_client(self.container_name)
                    self._credential = credential
                    self._service = service
                    logger.info(
                        "Azure Blob clients initialized for %s (container=%s)",
                        self.account_url,
                        self.container_name,
                    )
        return self._service

    def container(self, name: str | None = None) -> ContainerClient:
        """Container client for ``name``; the default one is reused."""
        service = self.service()
        if name is None or name == self.container_name:
            assert self._container is not None
            return self._container
        return service.get_container_client(name)

    async def ensure_container(self, name: str | None = None) -> None:
        """Create the container if it does not exist yet (private access)."""
        container = self.container(name)
        if await container.exists():
            return
        try:
            await container.create_container()
            logger.info("Created container %s", container.container_name)
        except ResourceExistsError:
            # Lost a race with a concurrent create
            pass

    async def delete_blob(self, blob_path: str) -> bool:
        """Delete a blob from the default container; False when already gone."""
        try:
            await self.container().delete_blob(blob_path)
        except ResourceNotFoundError:
            logger.debug("Blob %s already absent", blob_path)
            return False
        return True

    def blob_url(self, blob_path: str, container_name: str | None = None) -> str:
        return blob_url(self.account_url, container_name or self.container_name, blob_path)

    async def close(self) -> None:
        if self._service is not None:
            await self._service.close()
        close_credential = getattr(self._credential, "close", None)
        if close_credential is not None:
            await close_credential()
        self._service = None
        self._container = None
        self._credential = None


__all__ = ["AzureClients", "account_url_for"]
