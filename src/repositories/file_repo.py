"""File metadata repository."""

from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..models.file_metadata import FileMetadata
from .base import BaseRepository


class FileMetadataRepository(BaseRepository[FileMetadata]):
    """Repository for FileMetadata records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, FileMetadata)

    async def put_if_absent(self, record: FileMetadata, commit: bool = True) -> FileMetadata:
        """
        Insert a new record, failing with ConflictError if the file_id exists.
        With ``commit=False`` the insert is only flushed so callers can add
        more rows to the same transaction.
        """
        async with self._store_call("put_if_absent"):
            self.session.add(record)
            try:
                await self.session.flush()
            except IntegrityError as e:
                await self.session.rollback()
                raise ConflictError(f"File {record.file_id} already exists") from e
            if commit:
                await self.session.commit()
        return record

    async def get(self, file_id: str) -> Optional[FileMetadata]:
        """Get a record by file_id."""
        async with self._store_call("get"):
            stmt = (
                select(FileMetadata)
                .where(FileMetadata.file_id == file_id)
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def delete(self, file_id: str) -> bool:
        """Delete a record. Returns False if nothing was deleted."""
        async with self._store_call("delete"):
            result = await self.session.execute(
                delete(FileMetadata).where(FileMetadata.file_id == file_id)
            )
            await self.session.commit()
        return result.rowcount > 0

    async def query_by_owner(self, owner_id: str) -> List[FileMetadata]:
        """All records for an owner, newest first."""
        async with self._store_call("query_by_owner"):
            stmt = (
                select(FileMetadata)
                .where(FileMetadata.owner_id == owner_id)
                .order_by(FileMetadata.created_at.desc())
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

    async def require(self, file_id: str, owner_id: Optional[str] = None) -> FileMetadata:
        """
        Get a record or raise NotFoundError.
        When owner_id is given, records owned by someone else are reported
        as not found.
        """
        record = await self.get(file_id)
        if record is None or (owner_id is not None and record.owner_id != owner_id):
            raise NotFoundError(f"File {file_id} not found")
        return record
