"""Blob naming convention shared by both backends.

Blobs live at ``{base_path}/{user_id}/{file_name}``. The user id segment is
what keeps users apart and is also the only check applied before deletion.
"""

from __future__ import annotations

import mimetypes
import os
from urllib.parse import quote, unquote, urlsplit

from filestore.storage.contracts import StorageAuthorizationError, StorageError

DEFAULT_BASE_PATH = "images"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
FILE_ID_SEPARATOR = "__"


def build_blob_path(
    file_name: str,
    *,
    base_path: str = DEFAULT_BASE_PATH,
    user_id: str | None = None,
) -> str:
    """Join base path, optional user id and file name with forward slashes."""
    segments = [base_path.strip("/")]
    if user_id:
        segments.append(user_id)
    segments.append(file_name)
    return "/".join(segment for segment in segments if segment)


def local_file_name(file_id: str, local_path: str) -> str:
    """Stored name for a file ingested from disk: ``{file_id}__{basename}``."""
    return f"{file_id}{FILE_ID_SEPARATOR}{os.path.basename(local_path)}"


def guess_content_type(file_name: str) -> str:
    content_type, _ = mimetypes.guess_type(file_name)
    return content_type or DEFAULT_CONTENT_TYPE


def blob_url(account_url: str, container_name: str, blob_path: str) -> str:
    return f"{account_url.rstrip('/')}/{container_name}/{quote(blob_path, safe='/')}"


def blob_path_from_url(file_url: str, container_name: str) -> str:
    """Extract the blob path following the container segment of a stored URL.

    Query strings (e.g. an expired SAS) are ignored. Works for Azure account
    URLs as well as emulator URLs that carry the account name in the path.
    """
    segments = unquote(urlsplit(file_url).path).split("/")
    try:
        index = segments.index(container_name)
    except ValueError:
        raise StorageError(
            "parse_url", container_name, None, f"container segment not found in {file_url!r}"
        ) from None

    blob_path = "/".join(segments[index + 1 :])
    if not blob_path:
        raise StorageError("parse_url", container_name, None, f"no blob path in {file_url!r}")
    return blob_path


def require_owner(
    blob_path: str, user_id: str, *, container_name: str | None = None, op: str = "delete"
) -> None:
    """Raise unless ``user_id`` is one of the directory segments of ``blob_path``."""
    directories = blob_path.split("/")[:-1]
    if not user_id or user_id not in directories:
        raise StorageAuthorizationError(
            op, container_name, blob_path, "user id not found in blob path"
        )


__all__ = [
    "DEFAULT_BASE_PATH",
    "DEFAULT_CONTENT_TYPE",
    "build_blob_path",
    "local_file_name",
    "guess_content_type",
    "blob_url",
    "blob_path_from_url",
    "require_owner",
]
