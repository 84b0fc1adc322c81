"""File metadata and chunk model definitions."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..config.database import Base
from ..utils.constants import ChunkStatus, UploadStatus
from ..utils.helpers import utcnow


class FileMetadata(Base):
    """One logical uploaded object."""

    __tablename__ = "files"

    file_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str] = mapped_column(String, nullable=False)
    total_size: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    upload_type: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), default=UploadStatus.UPLOADING.value, nullable=False
    )
    storage_key: Mapped[str] = mapped_column(String, nullable=False)

    # Multipart only
    storage_upload_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    chunk_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    total_chunks: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class FileChunk(Base):
    """One part of a multipart upload, keyed by (file_id, chunk_number)."""

    __tablename__ = "file_chunks"

    # No FK cascade: chunk rows outlive their file record on delete
    file_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    chunk_number: Mapped[int] = mapped_column(Integer, primary_key=True)

    expected_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), default=ChunkStatus.PENDING.value, nullable=False
    )
    checksum: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    uploaded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
