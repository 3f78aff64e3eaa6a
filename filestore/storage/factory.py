"""Factory for building the configured storage backend."""

from __future__ import annotations

from filestore.core.config import Settings, settings
from filestore.storage.contracts import BlobStorage, StorageConfigError
from filestore.storage.identity_impl import IdentityBlobStorage
from filestore.storage.signed_impl import SignedURLBlobStorage

IDENTITY = "identity"
SIGNED = "signed"


def _resolve_backend(config: Settings) -> str:
    """Map STORAGE_BACKEND to a backend name; "auto" picks signed when a key is set."""
    backend = config.STORAGE_BACKEND.strip().lower()
    if backend == "auto":
        return SIGNED if config.AZURE_STORAGE_ACCOUNT_KEY else IDENTITY
    if backend in (IDENTITY, SIGNED):
        return backend
    raise StorageConfigError(
        "init",
        config.AZURE_CONTAINER_NAME,
        None,
        f"unknown STORAGE_BACKEND {config.STORAGE_BACKEND!r}; expected auto, identity or signed",
    )


def build_storage(config: Settings | None = None) -> BlobStorage:
    """Build the storage backend selected by configuration.

    No client is created here; each backend connects on first use.

    Environment variables:
        STORAGE_BACKEND: auto, identity or signed (default: auto)
        AZURE_STORAGE_ACCOUNT_NAME: Storage account name
        AZURE_STORAGE_ACCOUNT_KEY: Shared key (signed backend only)
        AZURE_STORAGE_ENDPOINT: Blob endpoint override (e.g. Azurite)
        AZURE_CONTAINER_NAME: Container holding all blobs (default: files)
        STORAGE_BASE_PATH: Base folder within the container (default: images)
        SAS_TTL_MINUTES: Lifetime of signed URLs (default: 5)
    """
    config = config or settings
    endpoint = config.AZURE_STORAGE_ENDPOINT or None

    if _resolve_backend(config) == SIGNED:
        return SignedURLBlobStorage(
            config.AZURE_STORAGE_ACCOUNT_NAME,
            config.AZURE_STORAGE_ACCOUNT_KEY,
            config.AZURE_CONTAINER_NAME,
            endpoint=endpoint,
            base_path=config.STORAGE_BASE_PATH,
            grant_minutes=config.SAS_TTL_MINUTES,
        )
    return IdentityBlobStorage(
        config.AZURE_STORAGE_ACCOUNT_NAME,
        config.AZURE_CONTAINER_NAME,
        endpoint=endpoint,
        base_path=config.STORAGE_BASE_PATH,
    )


__all__ = ["build_storage"]
