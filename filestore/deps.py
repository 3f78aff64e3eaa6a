"""Shared dependencies for FastAPI routes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Header, HTTPException, Request

from filestore.schemas.domain import UserContext

if TYPE_CHECKING:
    from filestore.storage.contracts import BlobStorage
    from filestore.storage.images import ImageStorageAdapter


def get_storage(request: Request) -> "BlobStorage":
    """Storage backend built once at startup and kept on app state."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(status_code=503, detail="Storage backend unavailable")
    return storage


def get_images(request: Request) -> "ImageStorageAdapter":
    images = getattr(request.app.state, "images", None)
    if images is None:
        raise HTTPException(status_code=503, detail="Storage backend unavailable")
    return images


def get_current_user(x_user_id: str | None = Header(default=None)) -> UserContext:
    """User identity forwarded by the authenticating proxy in front of this service."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return UserContext(id=x_user_id)


__all__ = ["get_storage", "get_images", "get_current_user"]
