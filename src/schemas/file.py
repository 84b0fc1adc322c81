"""File metadata schemas."""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class FileResponse(BaseModel):
    """File response schema."""

    model_config = ConfigDict(from_attributes=True)

    file_id: str
    filename: str
    content_type: str
    total_size: int = Field(..., description="Declared size in bytes (0 if unknown)")
    upload_type: str = Field(..., description="single or multipart")
    status: str = Field(..., description="uploading, completed, failed")
    owner_id: str
    chunk_size: Optional[int] = None
    total_chunks: Optional[int] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class FileListResponse(BaseModel):
    """The caller's files."""

    files: List[FileResponse]
    count: int


class FileDownloadResponse(BaseModel):
    """File download response with presigned URL."""

    file_id: str
    url: str
    expires_at: datetime
