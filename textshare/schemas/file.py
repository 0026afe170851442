"""
Pydantic schemas for file upload and download.
"""
from typing import List, Optional

from pydantic import BaseModel, Field, validator

from textshare.schemas.common import AccessInfo, CreatedResponse, blank_to_none


class FileUploadOptions(BaseModel):
    """Form fields sent along with an upload."""
    title: Optional[str] = Field(None, max_length=200)
    password: Optional[str] = Field(None, max_length=256)
    max_downloads: Optional[int] = Field(None, ge=1, description="Delete after this many downloads")
    expires_in: Optional[str] = Field(None, max_length=16)
    custom_slug: Optional[str] = Field(None, description="Custom slug; single-file uploads only")

    @validator("title", "password", "expires_in", "custom_slug", pre=True)
    def empty_strings_are_absent(cls, v):
        return blank_to_none(v) if isinstance(v, str) else v


class UploadedFile(BaseModel):
    """An accepted upload, already read into memory."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class FileCreated(CreatedResponse):
    filename: str = Field(..., description="Original file name")
    size_bytes: int


class FileUploadResponse(BaseModel):
    bundle_slug: Optional[str] = Field(None, description="Shared by all files of a multi-file upload")
    files: List[FileCreated]


class FileMetadata(AccessInfo):
    title: Optional[str] = None
    original_name: str
    mime_type: str
    size_bytes: int
    bundle_slug: Optional[str] = None


class FileDetailResponse(FileMetadata):
    """File metadata plus the other files of its bundle."""
    bundle: List[FileMetadata] = Field(default_factory=list)
