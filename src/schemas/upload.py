"""Pydantic schemas for the upload staging endpoints."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FileUpload(BaseModel):
    """
    One base64-encoded file sent by the form.

    Attributes:
        name: Original filename
        type: Declared MIME type
        size: Declared size in bytes (the decoded size is what is enforced)
        data: Base64 file content
    """

    name: str = Field(..., min_length=1, description="Original filename")
    type: str = Field(..., description="MIME type")
    size: Optional[int] = Field(None, ge=0, description="Declared size in bytes")
    data: Optional[str] = Field(None, description="Base64-encoded file content")


class UploadRequest(BaseModel):
    """
    Request schema for staging files.

    Attributes:
        files: Files to stage (at least one)
        record_id: Optional Notion page to attach the first file's URL to
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    files: List[FileUpload] = Field(default_factory=list, description="Files to stage")
    record_id: Optional[str] = Field(None, description="Notion page id")


class StagedFile(BaseModel):
    """A file stored in the staging bucket."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    file_name: str
    key: str
    url: str
    content_type: str
    size: int
    expires_at: str


class FailedFile(BaseModel):
    """A file that was rejected or could not be stored."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = False
    file_name: str
    error: str


class UploadResponse(BaseModel):
    """
    Response schema for the upload endpoint.

    Per-file failures are listed in failed_files; the request itself
    still succeeds.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    uploaded_files: List[StagedFile] = Field(default_factory=list)
    failed_files: List[FailedFile] = Field(default_factory=list)
    message: str
    total_files: int
    successful_count: int
    failed_count: int
    record_updated: Optional[bool] = None
