"""Upload protocol schemas: plans, chunk reports, completion."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from ..utils.constants import ChunkOutcome, UploadType
from ..utils.validators import validate_content_type, validate_declared_size, validate_filename


class UploadURLRequest(BaseModel):
    """Request an upload plan."""

    filename: str = Field(..., description="Original filename")
    size: Optional[int] = Field(None, description="Declared total size in bytes")
    content_type: Optional[str] = Field(None, description="MIME type of the file")

    @field_validator("filename")
    @classmethod
    def _validate_filename(cls, v: str) -> str:
        return validate_filename(v)

    @field_validator("size")
    @classmethod
    def _validate_size(cls, v: Optional[int]) -> Optional[int]:
        return validate_declared_size(v)

    @field_validator("content_type")
    @classmethod
    def _validate_content_type(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        return validate_content_type(v, info.data.get("filename"))


class ChunkURL(BaseModel):
    """Presigned URL for a single part."""

    chunk_number: int = Field(..., description="Part number (1-indexed)")
    url: str = Field(..., description="Presigned URL for uploading this part")
    expires_at: datetime
    size: int = Field(..., description="Expected size of this part in bytes")


class UploadURLResponse(BaseModel):
    """Upload plan: one URL for single uploads, one per chunk for multipart."""

    file_id: str
    upload_type: UploadType
    url: Optional[str] = None
    expires_at: Optional[datetime] = None
    chunks: Optional[List[ChunkURL]] = None


class ChunkCompleteRequest(BaseModel):
    """Chunk delivery report."""

    status: ChunkOutcome
    checksum: Optional[str] = Field(
        None, description="ETag returned by the blob store for the part"
    )


class ChunkCompleteResponse(BaseModel):
    chunk_number: int
    status: ChunkOutcome
    upload_complete: bool
    total_chunks: Optional[int] = None


class ChunkStatusInfo(BaseModel):
    chunk_number: int
    expected_size: int
    status: str
    checksum: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class UploadStatusResponse(BaseModel):
    """Derived progress of a multipart upload."""

    file_id: str
    status: str
    upload_complete: bool
    uploaded_chunks: int
    total_chunks: int
    chunks: List[ChunkStatusInfo]


class CompleteUploadResponse(BaseModel):
    file_id: str
    total_chunks: int
    completed_at: datetime


class AbortUploadResponse(BaseModel):
    file_id: str
    status: str
