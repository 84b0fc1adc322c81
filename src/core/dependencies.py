"""Reusable FastAPI dependencies.

Store clients are built once at startup and kept on ``app.state``; services
are constructed per request around them.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config.database import get_db
from ..repositories.chunk_repo import ChunkRepository
from ..repositories.file_repo import FileMetadataRepository
from ..repositories.storage_repo import StorageRepository
from ..services.chunk_tracker import ChunkTracker
from ..services.completion_service import CompletionCoordinator
from ..services.file_service import FileService
from ..services.grant_service import AccessGrantIssuer
from ..services.upload_planner import UploadPlanner


def get_storage_repo(request: Request) -> StorageRepository:
    """Dependency to get the shared storage repository."""
    return request.app.state.storage_repo


def get_file_repo(db: AsyncSession = Depends(get_db)) -> FileMetadataRepository:
    """Dependency to get file metadata repository."""
    return FileMetadataRepository(db)


def get_chunk_repo(db: AsyncSession = Depends(get_db)) -> ChunkRepository:
    """Dependency to get chunk repository."""
    return ChunkRepository(db)


def get_grant_issuer(
    storage_repo: StorageRepository = Depends(get_storage_repo),
) -> AccessGrantIssuer:
    return AccessGrantIssuer(storage_repo)


def get_upload_planner(
    file_repo: FileMetadataRepository = Depends(get_file_repo),
    chunk_repo: ChunkRepository = Depends(get_chunk_repo),
    storage_repo: StorageRepository = Depends(get_storage_repo),
    grant_issuer: AccessGrantIssuer = Depends(get_grant_issuer),
) -> UploadPlanner:
    return UploadPlanner(file_repo, chunk_repo, storage_repo, grant_issuer)


def get_chunk_tracker(
    file_repo: FileMetadataRepository = Depends(get_file_repo),
    chunk_repo: ChunkRepository = Depends(get_chunk_repo),
    grant_issuer: AccessGrantIssuer = Depends(get_grant_issuer),
) -> ChunkTracker:
    return ChunkTracker(file_repo, chunk_repo, grant_issuer)


def get_completion_coordinator(
    file_repo: FileMetadataRepository = Depends(get_file_repo),
    chunk_repo: ChunkRepository = Depends(get_chunk_repo),
    storage_repo: StorageRepository = Depends(get_storage_repo),
) -> CompletionCoordinator:
    return CompletionCoordinator(file_repo, chunk_repo, storage_repo)


def get_file_service(
    file_repo: FileMetadataRepository = Depends(get_file_repo),
    storage_repo: StorageRepository = Depends(get_storage_repo),
    grant_issuer: AccessGrantIssuer = Depends(get_grant_issuer),
) -> FileService:
    return FileService(file_repo, storage_repo, grant_issuer)
