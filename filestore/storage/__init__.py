"""Storage package: Azure Blob backends behind one interface."""

from filestore.storage.contracts import (
    BlobStorage,
    ImageProcessor,
    StorageAuthenticationError,
    StorageAuthorizationError,
    StorageConfigError,
    StorageError,
)
from filestore.storage.factory import build_storage
from filestore.storage.identity_impl import IdentityBlobStorage
from filestore.storage.images import ImageStorageAdapter
from filestore.storage.signed_impl import SignedURLBlobStorage

__all__ = [
    "BlobStorage",
    "ImageProcessor",
    "StorageError",
    "StorageConfigError",
    "StorageAuthenticationError",
    "StorageAuthorizationError",
    "build_storage",
    "IdentityBlobStorage",
    "SignedURLBlobStorage",
    "ImageStorageAdapter",
]
