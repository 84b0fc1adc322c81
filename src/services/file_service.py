"""File service for metadata lookup, downloads and deletion."""

from typing import List

from ..core.exceptions import ConflictError, StorageUnavailableError
from ..models.file_metadata import FileMetadata
from ..repositories.file_repo import FileMetadataRepository
from ..repositories.storage_repo import StorageRepository
from ..utils.constants import UploadStatus, UploadType
from ..utils.logger import get_logger
from .grant_service import AccessGrantIssuer, Grant

logger = get_logger(__name__)


class FileService:
    """Service for file operations outside the upload protocol."""

    def __init__(
        self,
        file_repo: FileMetadataRepository,
        storage_repo: StorageRepository,
        grant_issuer: AccessGrantIssuer,
    ):
        self.file_repo = file_repo
        self.storage_repo = storage_repo
        self.grant_issuer = grant_issuer

    async def get_file(self, file_id: str, owner_id: str) -> FileMetadata:
        """Get file details by ID (with authorization check)."""
        return await self.file_repo.require(file_id, owner_id)

    async def list_files(self, owner_id: str) -> List[FileMetadata]:
        """List the caller's files, newest first."""
        return await self.file_repo.query_by_owner(owner_id)

    async def get_download_url(self, file_id: str, owner_id: str) -> Grant:
        """
        Generate a presigned download URL.
        The key always comes from the stored record, never from the client.
        """
        record = await self.file_repo.require(file_id, owner_id)

        # Single uploads have no completion callback, so they are served as-is
        if (
            record.upload_type == UploadType.MULTIPART.value
            and record.status != UploadStatus.COMPLETED.value
        ):
            raise ConflictError(f"Upload is {record.status}; the file is not available yet")

        return self.grant_issuer.grant_read(record.storage_key)

    async def delete_file(self, file_id: str, owner_id: str) -> None:
        """
        Delete the object first, then its metadata.
        If the object cannot be deleted the metadata is left untouched, so no
        record ever points at a deleted object through this path.
        """
        record = await self.file_repo.require(file_id, owner_id)

        try:
            await self.storage_repo.delete_file(record.storage_key)
        except StorageUnavailableError:
            logger.error(
                "Failed to delete object; metadata kept",
                file_id=file_id,
                storage_key=record.storage_key,
            )
            raise

        try:
            await self.file_repo.delete(file_id)
        except StorageUnavailableError:
            logger.warning(
                "Object deleted but metadata cleanup failed",
                file_id=file_id,
                storage_key=record.storage_key,
            )
            raise

        logger.info("File deleted", file_id=file_id)
