"""Completion coordination for multipart uploads.

State machine per upload: ``uploading`` is initial, ``completed`` and
``failed`` are terminal. Completeness is derived from chunk rows on every
call and never cached; only ``finalize`` and ``abort`` change the status.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..core.exceptions import ConflictError, StorageUnavailableError
from ..models.file_metadata import FileChunk, FileMetadata
from ..repositories.chunk_repo import ChunkRepository
from ..repositories.file_repo import FileMetadataRepository
from ..repositories.storage_repo import MultipartSessionNotFoundError, StorageRepository
from ..utils.constants import ChunkStatus, UploadStatus, UploadType
from ..utils.helpers import utcnow
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CompletionState:
    is_complete: bool
    chunks: List[FileChunk]
    record: FileMetadata


@dataclass
class FinalizeResult:
    file_id: str
    total_chunks: int
    completed_at: datetime


def chunks_complete(chunks: List[FileChunk], expected_total: Optional[int] = None) -> bool:
    """True iff there is at least one chunk and every chunk is uploaded."""
    if not chunks:
        return False
    if expected_total is not None and len(chunks) != expected_total:
        return False
    return all(chunk.status == ChunkStatus.UPLOADED.value for chunk in chunks)


class CompletionCoordinator:
    """Derives completeness and performs finalize/abort across both stores."""

    def __init__(
        self,
        file_repo: FileMetadataRepository,
        chunk_repo: ChunkRepository,
        storage_repo: StorageRepository,
    ):
        self.file_repo = file_repo
        self.chunk_repo = chunk_repo
        self.storage_repo = storage_repo

    async def _derive(self, record: FileMetadata) -> CompletionState:
        chunks = await self.chunk_repo.list_for_file(record.file_id)
        return CompletionState(
            is_complete=chunks_complete(chunks, record.total_chunks),
            chunks=chunks,
            record=record,
        )

    async def check_complete(self, file_id: str, owner_id: Optional[str] = None) -> CompletionState:
        """Report whether every chunk of the upload has been delivered."""
        record = await self.file_repo.require(file_id, owner_id)
        return await self._derive(record)

    async def finalize(self, file_id: str, owner_id: Optional[str] = None) -> FinalizeResult:
        """
        Merge all parts into the final object and mark the upload completed.

        Safe to call repeatedly: an already completed upload returns its
        stored result, and a session the blob store has already merged is
        treated as done once the object is confirmed to exist.
        """
        record = await self.file_repo.require(file_id, owner_id)

        if record.upload_type != UploadType.MULTIPART.value or not record.storage_upload_id:
            raise ConflictError("Not a multipart upload")
        if record.status == UploadStatus.COMPLETED.value:
            return FinalizeResult(
                file_id=record.file_id,
                total_chunks=record.total_chunks,
                completed_at=record.completed_at,
            )
        if record.status == UploadStatus.FAILED.value:
            raise ConflictError("Upload has failed and cannot be completed")

        state = await self._derive(record)
        if not state.is_complete:
            raise ConflictError("Not all chunks are uploaded yet")

        parts = [
            {"part_number": chunk.chunk_number, "etag": chunk.checksum}
            for chunk in state.chunks
        ]
        try:
            await self.storage_repo.complete_multipart_upload(
                key=record.storage_key,
                upload_id=record.storage_upload_id,
                parts=parts,
            )
        except MultipartSessionNotFoundError:
            if not await self.storage_repo.file_exists(record.storage_key):
                raise
            logger.info(
                "Multipart session already merged",
                file_id=file_id,
                storage_key=record.storage_key,
            )

        record.status = UploadStatus.COMPLETED.value
        record.completed_at = utcnow()
        completed_at = record.completed_at
        try:
            await self.file_repo.put(record)
        except StorageUnavailableError:
            # Next finalize finds the session merged and retries this write
            logger.warning(
                "Object merged but metadata not marked completed",
                file_id=file_id,
                storage_key=record.storage_key,
            )
            raise

        logger.info(
            "Multipart upload finalized",
            file_id=file_id,
            total_chunks=len(state.chunks),
        )
        return FinalizeResult(
            file_id=file_id,
            total_chunks=len(state.chunks),
            completed_at=completed_at,
        )

    async def abort(self, file_id: str, owner_id: Optional[str] = None) -> FileMetadata:
        """
        Abort the blob store session, then mark the upload failed.

        A session the blob store no longer knows is treated as already
        discarded, unless the final object exists: then it was merged and
        the upload cannot be aborted.
        """
        record = await self.file_repo.require(file_id, owner_id)

        if record.upload_type != UploadType.MULTIPART.value or not record.storage_upload_id:
            raise ConflictError("Not a multipart upload")
        if record.status != UploadStatus.UPLOADING.value:
            raise ConflictError(f"Upload is already {record.status}")

        try:
            await self.storage_repo.abort_multipart_upload(
                key=record.storage_key, upload_id=record.storage_upload_id
            )
        except MultipartSessionNotFoundError:
            if await self.storage_repo.file_exists(record.storage_key):
                raise ConflictError("Upload was already merged; complete it instead")
            logger.info(
                "Multipart session already gone",
                file_id=file_id,
                storage_key=record.storage_key,
            )

        record.status = UploadStatus.FAILED.value
        record = await self.file_repo.put(record)

        logger.info("Multipart upload aborted", file_id=file_id)
        return record
