"""Chunk state tracking for multipart uploads."""

from typing import Optional

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.file_metadata import FileChunk
from ..repositories.chunk_repo import ChunkRepository
from ..repositories.file_repo import FileMetadataRepository
from ..utils.constants import ChunkOutcome, ChunkStatus, UploadStatus, UploadType
from ..utils.helpers import utcnow
from ..utils.logger import get_logger
from .grant_service import AccessGrantIssuer
from .upload_planner import ChunkGrant

logger = get_logger(__name__)


class ChunkTracker:
    """
    Records per-chunk delivery outcomes.

    report_chunk is the only writer of a chunk's status after planning. Writes
    are unconditional overwrites, so the latest report wins: an "uploaded"
    chunk reported "failed" later reads as failed.
    """

    def __init__(
        self,
        file_repo: FileMetadataRepository,
        chunk_repo: ChunkRepository,
        grant_issuer: AccessGrantIssuer,
    ):
        self.file_repo = file_repo
        self.chunk_repo = chunk_repo
        self.grant_issuer = grant_issuer

    async def report_chunk(
        self,
        file_id: str,
        chunk_number: int,
        outcome: ChunkOutcome,
        checksum: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> None:
        """Record a chunk's outcome. Raises NotFoundError for an unknown chunk."""
        outcome = ChunkOutcome(outcome)
        if outcome == ChunkOutcome.UPLOADED and not checksum:
            raise ValidationError("checksum is required when status is 'uploaded'", field="checksum")

        if owner_id is not None:
            await self.file_repo.require(file_id, owner_id)

        status = ChunkStatus(outcome.value)
        updated = await self.chunk_repo.update_status(
            file_id,
            chunk_number,
            status,
            checksum=checksum,
            uploaded_at=utcnow() if status == ChunkStatus.UPLOADED else None,
        )
        if not updated:
            raise NotFoundError(f"Chunk {chunk_number} of file {file_id} not found")

        logger.info(
            "Chunk reported",
            file_id=file_id,
            chunk_number=chunk_number,
            status=status.value,
        )

    async def reissue_chunk(
        self, file_id: str, chunk_number: int, owner_id: Optional[str] = None
    ) -> ChunkGrant:
        """
        Issue a fresh part grant for a failed chunk.
        The failed record is superseded by a new pending one.
        """
        record = await self.file_repo.require(file_id, owner_id)
        if record.upload_type != UploadType.MULTIPART.value:
            raise ConflictError("Not a multipart upload")
        if record.status != UploadStatus.UPLOADING.value:
            raise ConflictError(f"Upload is already {record.status}")

        chunk = await self.chunk_repo.get(file_id, chunk_number)
        if chunk is None:
            raise NotFoundError(f"Chunk {chunk_number} of file {file_id} not found")
        if chunk.status != ChunkStatus.FAILED.value:
            raise ConflictError(f"Chunk {chunk_number} is {chunk.status}; only failed chunks can be re-issued")

        grant = self.grant_issuer.grant_write(
            record.storage_key, record.storage_upload_id, chunk_number
        )
        await self.chunk_repo.put(
            FileChunk(
                file_id=file_id,
                chunk_number=chunk_number,
                expected_size=chunk.expected_size,
                status=ChunkStatus.PENDING.value,
                checksum=None,
                uploaded_at=None,
            )
        )

        logger.info("Chunk re-issued", file_id=file_id, chunk_number=chunk_number)
        return ChunkGrant(chunk_number=chunk_number, size=chunk.expected_size, grant=grant)
