"""Upload decision and planning: single-shot vs. multipart, chunk math, grants."""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from ..config import settings
from ..core.exceptions import ConflictError, StorageUnavailableError, ValidationError
from ..models.file_metadata import FileChunk, FileMetadata
from ..repositories.chunk_repo import ChunkRepository
from ..repositories.file_repo import FileMetadataRepository
from ..repositories.storage_repo import StorageRepository
from ..utils.constants import ChunkStatus, UploadStatus, UploadType
from ..utils.helpers import build_storage_key, generate_file_id
from ..utils.logger import get_logger
from ..utils.validators import validate_content_type, validate_declared_size, validate_filename
from .grant_service import AccessGrantIssuer, Grant

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChunkPlan:
    """How a declared size splits into parts."""

    chunk_size: int
    total_chunks: int
    chunk_sizes: List[int]

    @property
    def last_chunk_size(self) -> int:
        return self.chunk_sizes[-1]


@dataclass(frozen=True)
class ChunkGrant:
    chunk_number: int
    size: int
    grant: Grant


@dataclass
class UploadPlan:
    """What the client needs to start sending bytes."""

    file_id: str
    upload_type: UploadType
    storage_key: str
    grant: Optional[Grant] = None
    chunks: List[ChunkGrant] = field(default_factory=list)


def should_use_multipart(declared_size: Optional[int], threshold: Optional[int] = None) -> bool:
    """Multipart iff a size is declared and it reaches the threshold."""
    threshold = settings.multipart_threshold_bytes if threshold is None else threshold
    return declared_size is not None and declared_size >= threshold


def compute_chunk_plan(total_size: int, chunk_size: int) -> ChunkPlan:
    """
    Split total_size into 1-indexed parts of chunk_size bytes.
    The last part carries the remainder: 0 < last <= chunk_size.
    """
    if total_size <= 0:
        raise ValueError("total_size must be positive")
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    total_chunks = math.ceil(total_size / chunk_size)
    sizes = [chunk_size] * (total_chunks - 1)
    sizes.append(total_size - (total_chunks - 1) * chunk_size)
    return ChunkPlan(chunk_size=chunk_size, total_chunks=total_chunks, chunk_sizes=sizes)


class UploadPlanner:
    """Decides single vs. multipart, issues grants and persists the initial records."""

    def __init__(
        self,
        file_repo: FileMetadataRepository,
        chunk_repo: ChunkRepository,
        storage_repo: StorageRepository,
        grant_issuer: AccessGrantIssuer,
    ):
        self.file_repo = file_repo
        self.chunk_repo = chunk_repo
        self.storage_repo = storage_repo
        self.grant_issuer = grant_issuer

    async def plan(
        self,
        owner_id: str,
        filename: str,
        declared_size: Optional[int] = None,
        content_type: Optional[str] = None,
    ) -> UploadPlan:
        """Create an upload plan. Raises ValidationError before any store call."""
        checks = (
            ("filename", validate_filename, (filename,)),
            ("size", validate_declared_size, (declared_size,)),
            ("content_type", validate_content_type, (content_type, filename)),
        )
        for field_name, check, args in checks:
            try:
                check(*args)
            except ValueError as e:
                raise ValidationError(str(e), field=field_name) from e

        content_type = content_type or settings.default_content_type

        if should_use_multipart(declared_size):
            return await self._plan_multipart(owner_id, filename, declared_size, content_type)
        return await self._plan_single(owner_id, filename, declared_size, content_type)

    async def _plan_single(
        self,
        owner_id: str,
        filename: str,
        declared_size: Optional[int],
        content_type: str,
    ) -> UploadPlan:
        file_id = generate_file_id()
        storage_key = build_storage_key(file_id, filename)
        grant = self.grant_issuer.grant_write(storage_key)

        record = FileMetadata(
            file_id=file_id,
            owner_id=owner_id,
            filename=filename,
            content_type=content_type,
            total_size=declared_size or 0,
            upload_type=UploadType.SINGLE.value,
            status=UploadStatus.UPLOADING.value,
            storage_key=storage_key,
        )
        try:
            await self.file_repo.put_if_absent(record)
        except StorageUnavailableError:
            # The grant is already signed; the object, if written, has no record.
            logger.warning(
                "Upload grant issued without metadata record",
                file_id=file_id,
                storage_key=storage_key,
            )
            raise

        logger.info(
            "Upload planned",
            file_id=file_id,
            upload_type=UploadType.SINGLE.value,
            total_size=record.total_size,
        )
        return UploadPlan(
            file_id=file_id,
            upload_type=UploadType.SINGLE,
            storage_key=storage_key,
            grant=grant,
        )

    async def _plan_multipart(
        self,
        owner_id: str,
        filename: str,
        declared_size: int,
        content_type: str,
    ) -> UploadPlan:
        chunk_plan = compute_chunk_plan(declared_size, settings.chunk_size_bytes)
        if chunk_plan.total_chunks > settings.max_multipart_parts:
            raise ValidationError(
                f"Upload would need {chunk_plan.total_chunks} parts; "
                f"the maximum is {settings.max_multipart_parts}"
            )

        file_id = generate_file_id()
        storage_key = build_storage_key(file_id, filename)

        # Nothing is persisted if the session cannot be opened
        upload_id = await self.storage_repo.initiate_multipart_upload(
            key=storage_key, content_type=content_type
        )

        try:
            chunk_grants = [
                ChunkGrant(
                    chunk_number=number,
                    size=size,
                    grant=self.grant_issuer.grant_write(storage_key, upload_id, number),
                )
                for number, size in enumerate(chunk_plan.chunk_sizes, start=1)
            ]

            record = FileMetadata(
                file_id=file_id,
                owner_id=owner_id,
                filename=filename,
                content_type=content_type,
                total_size=declared_size,
                upload_type=UploadType.MULTIPART.value,
                status=UploadStatus.UPLOADING.value,
                storage_key=storage_key,
                storage_upload_id=upload_id,
                chunk_size=chunk_plan.chunk_size,
                total_chunks=chunk_plan.total_chunks,
            )
            chunks = [
                FileChunk(
                    file_id=file_id,
                    chunk_number=cg.chunk_number,
                    expected_size=cg.size,
                    status=ChunkStatus.PENDING.value,
                )
                for cg in chunk_grants
            ]
            await self.file_repo.put_if_absent(record, commit=False)
            await self.chunk_repo.create_many(chunks)
        except (StorageUnavailableError, ConflictError):
            # No rollback of the blob store side: the session stays open until
            # reconciled or expired by a bucket lifecycle rule.
            logger.warning(
                "Orphaned multipart session",
                file_id=file_id,
                storage_key=storage_key,
                upload_id=upload_id,
            )
            raise

        logger.info(
            "Upload planned",
            file_id=file_id,
            upload_type=UploadType.MULTIPART.value,
            total_size=declared_size,
            total_chunks=chunk_plan.total_chunks,
        )
        return UploadPlan(
            file_id=file_id,
            upload_type=UploadType.MULTIPART,
            storage_key=storage_key,
            chunks=chunk_grants,
        )
