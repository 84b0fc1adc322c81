"""File chunk repository."""

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.file_metadata import FileChunk
from ..utils.constants import ChunkStatus
from .base import BaseRepository


class ChunkRepository(BaseRepository[FileChunk]):
    """Repository for FileChunk records keyed by (file_id, chunk_number)."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, FileChunk)

    async def create_many(self, chunks: Iterable[FileChunk]) -> None:
        """Insert chunk rows and commit the current transaction."""
        async with self._store_call("create_many"):
            self.session.add_all(list(chunks))
            await self.session.commit()

    async def get(self, file_id: str, chunk_number: int) -> Optional[FileChunk]:
        async with self._store_call("get"):
            stmt = (
                select(FileChunk)
                .where(
                    FileChunk.file_id == file_id,
                    FileChunk.chunk_number == chunk_number,
                )
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def list_for_file(self, file_id: str) -> List[FileChunk]:
        """All chunks of a file ordered by chunk number."""
        async with self._store_call("list_for_file"):
            stmt = (
                select(FileChunk)
                .where(FileChunk.file_id == file_id)
                .order_by(FileChunk.chunk_number)
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

    async def update_status(
        self,
        file_id: str,
        chunk_number: int,
        status: ChunkStatus,
        checksum: Optional[str] = None,
        uploaded_at: Optional[datetime] = None,
    ) -> bool:
        """
        Overwrite a chunk's delivery status. Last writer wins.
        checksum and uploaded_at are kept only for uploaded chunks.
        Returns False if the chunk does not exist.
        """
        values = {"status": status.value, "checksum": None, "uploaded_at": None}
        if status == ChunkStatus.UPLOADED:
            values.update(checksum=checksum, uploaded_at=uploaded_at)

        async with self._store_call("update_status"):
            result = await self.session.execute(
                update(FileChunk)
                .where(
                    FileChunk.file_id == file_id,
                    FileChunk.chunk_number == chunk_number,
                )
                .values(**values)
            )
            await self.session.commit()
        return result.rowcount > 0
