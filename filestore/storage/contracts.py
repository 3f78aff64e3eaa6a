"""Storage interfaces and error types."""

from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable

from filestore.schemas.domain import ProcessedImage, StoredFile, UserContext


class StorageError(Exception):
    """Storage failure raised by this package, with operation context."""

    def __init__(self, op: str, container: str | None, key: str | None, message: str):
        self.op = op
        self.container = container
        self.key = key
        self.message = message
        super().__init__(self.__str__())

    def __str__(self) -> str:  # pragma: no cover - trivial string formatting
        container_repr = self.container or "<unknown>"
        key_repr = self.key or "<unknown>"
        return f"{self.op} failed for container={container_repr} key={key_repr}: {self.message}"


class StorageConfigError(StorageError):
    """Required account, container, or key settings are missing."""


class StorageAuthenticationError(StorageError):
    """The ambient credential could not be set up for this process."""


class StorageAuthorizationError(StorageError):
    """The requesting user does not own the blob."""


@runtime_checkable
class BlobStorage(Protocol):
    """Contract shared by the identity-based and signed-URL backends.

    Every URL returned is an access descriptor: a plain blob URL for the
    identity backend, or a blob URL carrying a short-lived read grant for the
    signed-URL backend.
    """

    async def save_buffer(
        self,
        *,
        user_id: str,
        buffer: bytes,
        file_name: str,
        base_path: str | None = None,
        container_name: str | None = None,
    ) -> str:
        ...

    async def save_url(
        self,
        *,
        user_id: str,
        url: str,
        file_name: str,
        base_path: str | None = None,
        container_name: str | None = None,
    ) -> str:
        ...

    async def get_url(
        self,
        *,
        file_name: str,
        base_path: str | None = None,
        user_id: str | None = None,
        container_name: str | None = None,
    ) -> str:
        ...

    async def delete_file(self, user: UserContext, file: StoredFile) -> None:
        ...

    async def upload_local_file(
        self,
        *,
        user: UserContext,
        local_path: str,
        file_id: str,
        base_path: str | None = None,
        container_name: str | None = None,
    ) -> StoredFile:
        ...

    async def open_stream(self, file_url: str) -> AsyncIterator[bytes]:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class ImageProcessor(Protocol):
    """Normalizes raw image bytes and reports their metadata."""

    async def process(self, buffer: bytes) -> ProcessedImage:
        ...


__all__ = [
    "StorageError",
    "StorageConfigError",
    "StorageAuthenticationError",
    "StorageAuthorizationError",
    "BlobStorage",
    "ImageProcessor",
]
