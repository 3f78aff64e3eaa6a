"""File upload, access, download and delete endpoints."""

import logging
import os
import shutil
import tempfile
from urllib.parse import urlsplit
from uuid import uuid4

import httpx
from azure.core.exceptions import ResourceNotFoundError
from fastapi import APIRouter, Depends, HTTPException, Response, UploadFile
from fastapi.responses import StreamingResponse

from filestore.core.config import settings
from filestore.deps import get_current_user, get_images, get_storage
from filestore.schemas.api import (
    AvatarResponse,
    DeleteRequest,
    FileURLResponse,
    ImportRequest,
    UploadResponse,
)
from filestore.schemas.domain import StoredFile, UserContext
from filestore.services.image_processor import ImageProcessingError
from filestore.storage.contracts import (
    BlobStorage,
    StorageAuthenticationError,
    StorageAuthorizationError,
    StorageConfigError,
    StorageError,
)
from filestore.storage.images import ImageStorageAdapter
from filestore.storage.paths import blob_path_from_url, guess_content_type, require_owner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])

AVATAR_FILE_NAME = "avatar.png"


def _max_bytes() -> int:
    return settings.MAX_FILE_SIZE_MB * 1024 * 1024


def _too_large() -> HTTPException:
    return HTTPException(
        status_code=413,
        detail=f"File exceeds {settings.MAX_FILE_SIZE_MB}MB limit",
    )


@router.post("", response_model=UploadResponse)
async def upload_file(
    file: UploadFile,
    user: UserContext = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    """Upload a file into the caller's storage area."""
    file_id = str(uuid4())
    filename = os.path.basename(file.filename or "") or "upload.bin"

    with tempfile.TemporaryDirectory() as tmp_dir:
        local_path = os.path.join(tmp_dir, filename)
        with open(local_path, "wb") as fh:
            shutil.copyfileobj(file.file, fh)

        if os.stat(local_path).st_size > _max_bytes():
            raise _too_large()

        stored = await storage.upload_local_file(user=user, local_path=local_path, file_id=file_id)

    logger.info("Stored file %s for user %s (%d bytes)", file_id, user.id, stored.bytes)
    return UploadResponse(
        file_id=file_id,
        filename=filename,
        filepath=stored.filepath,
        bytes=stored.bytes,
    )


@router.post("/import", response_model=FileURLResponse)
async def import_file(
    body: ImportRequest,
    user: UserContext = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    """Copy a remote file into the caller's storage area."""
    file_name = os.path.basename(body.file_name)
    if not file_name:
        raise HTTPException(status_code=400, detail="Invalid file name")
    try:
        url = await storage.save_url(user_id=user.id, url=body.url, file_name=file_name)
    except httpx.HTTPError as e:
        raise HTTPException(status_code=502, detail=f"Failed to import file: {e}") from e
    return FileURLResponse(url=url)


@router.get("/url", response_model=FileURLResponse)
async def get_file_url(
    file_name: str,
    base_path: str | None = None,
    shared: bool = False,
    user: UserContext = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    """Resolve an access URL for one of the caller's files, or a shared file."""
    if "/" in file_name or (base_path is not None and "/" in base_path):
        raise HTTPException(status_code=400, detail="file_name and base_path must be single path segments")

    url = await storage.get_url(
        file_name=file_name,
        base_path=base_path,
        user_id=None if shared else user.id,
    )
    return FileURLResponse(url=url)


@router.get("/download")
async def download_file(
    filepath: str,
    user: UserContext = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    """Stream one of the caller's stored files."""
    try:
        blob_path = blob_path_from_url(filepath, settings.AZURE_CONTAINER_NAME)
        require_owner(
            blob_path, user.id, container_name=settings.AZURE_CONTAINER_NAME, op="download"
        )
        stream = await storage.open_stream(filepath)
    except StorageAuthorizationError as e:
        raise HTTPException(status_code=403, detail="Not allowed to read this file") from e
    except (StorageConfigError, StorageAuthenticationError):
        raise
    except StorageError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except ResourceNotFoundError as e:
        raise HTTPException(status_code=404, detail="File not found") from e
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise HTTPException(status_code=404, detail="File not found") from e
        raise

    media_type = guess_content_type(urlsplit(filepath).path)
    return StreamingResponse(stream, media_type=media_type)


@router.delete("", status_code=204)
async def delete_file(
    body: DeleteRequest,
    user: UserContext = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    """Delete one of the caller's files."""
    try:
        await storage.delete_file(user, StoredFile(filepath=body.filepath))
    except StorageAuthorizationError as e:
        raise HTTPException(status_code=403, detail="Not allowed to delete this file") from e
    except StorageError as e:
        raise HTTPException(status_code=400, detail=e.message) from e

    logger.info("Deleted %s for user %s", body.filepath, user.id)
    return Response(status_code=204)


@router.post("/avatar", response_model=AvatarResponse)
async def upload_avatar(
    file: UploadFile,
    user: UserContext = Depends(get_current_user),
    images: ImageStorageAdapter = Depends(get_images),
):
    """Normalize and store the caller's avatar image."""
    content = await file.read()
    if len(content) > _max_bytes():
        raise _too_large()

    try:
        result = await images.process_avatar(
            user_id=user.id,
            buffer=content,
            file_name=AVATAR_FILE_NAME,
        )
    except ImageProcessingError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return AvatarResponse(url=result.url, metadata=result.metadata)
