"""API request and response models for file endpoints."""

from pydantic import BaseModel, Field

from filestore.schemas.domain import ImageMetadata


class UploadResponse(BaseModel):
    """Result of a multipart file upload."""

    file_id: str
    filename: str
    filepath: str
    bytes: int


class ImportRequest(BaseModel):
    """Copy a remote file into the user's storage area."""

    url: str = Field(min_length=1)
    file_name: str = Field(min_length=1)


class FileURLResponse(BaseModel):
    """Access URL for a stored file."""

    url: str


class DeleteRequest(BaseModel):
    """Delete a stored file by the filepath it was issued with."""

    filepath: str = Field(min_length=1)


class AvatarResponse(BaseModel):
    """Uploaded avatar URL and image metadata."""

    url: str
    metadata: ImageMetadata
