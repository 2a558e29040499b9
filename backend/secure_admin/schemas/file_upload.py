from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from .common import Pagination


class FileOwner(BaseModel):
    first_name: str
    last_name: str
    email: str


class FileUploadResponse(BaseModel):
    id: UUID
    stored_name: str
    original_name: str
    size_bytes: int
    mime_type: str
    upload_path: str
    is_safe: bool
    uploaded_at: datetime
    is_remote: bool
    remote_url: str | None = None


class FileListItem(FileUploadResponse):
    owner_id: UUID
    owner: FileOwner | None = None


class FileList(BaseModel):
    files: list[FileListItem]
    pagination: Pagination


class FileDownloadResponse(BaseModel):
    id: UUID
    file_name: str
    size_bytes: int
    mime_type: str
    download_url: str
    is_remote: bool


class FileUploadResult(BaseModel):
    success: bool = True
    file: FileUploadResponse


class FileDownloadResult(BaseModel):
    success: bool = True
    file: FileDownloadResponse
