"""Base repository with common database operations."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Generic, Optional, TypeVar, Dict, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

from ..core.exceptions import StorageUnavailableError
from ..utils.logger import get_logger

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=DeclarativeBase)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD plumbing."""

    def __init__(self, session: AsyncSession, model: type[ModelType]):
        """
        Initialize repository.
        Args:
            session: Async database session
            model: SQLAlchemy model class
        """
        self.session = session
        self.model = model

    @asynccontextmanager
    async def _store_call(self, action: str) -> AsyncIterator[None]:
        """
        Wrap metadata store access.
        Any SQLAlchemy failure rolls the session back and surfaces as
        StorageUnavailableError.
        """
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Metadata store call failed",
                action=action,
                table=self.model.__tablename__,
                error=str(e),
            )
            raise StorageUnavailableError("Metadata store is unavailable") from e

    async def put(self, entity: ModelType) -> ModelType:
        """Unconditionally write an entity (insert or overwrite)."""
        async with self._store_call("put"):
            merged = await self.session.merge(entity)
            await self.session.commit()
        return merged

    def to_dict(self, entity: Optional[ModelType]) -> Optional[Dict[str, Any]]:
        """Convert SQLAlchemy model to dictionary."""
        if entity is None:
            return None
        return {
            column.name: getattr(entity, column.name)
            for column in entity.__table__.columns
        }
