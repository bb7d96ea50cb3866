"""Base repository with the lookups and guarded writes every table shares."""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import ColumnElement, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository keyed by a string `id` primary key."""

    def __init__(self, model: Type[T], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy ORM model class
            session: Database session
        """
        self.model = model
        self.session = session

    async def get(self, id: str) -> Optional[T]:
        """Get a single record by ID, or None."""
        return await self.session.get(self.model, id, populate_existing=True)

    async def create(self, instance: T) -> T:
        """
        Add a new record and flush it so defaults are populated.

        Args:
            instance: Model instance to create

        Returns:
            Created instance
        """
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update_where(
        self, id: str, *conditions: ColumnElement[bool], **values: Any
    ) -> bool:
        """
        Update one record only if it still satisfies `conditions`.

        The check and the write are a single UPDATE statement, so concurrent
        writers cannot both succeed against the same expected state.

        Args:
            id: Primary key value
            *conditions: Extra WHERE clauses describing the expected state
            **values: Columns to write

        Returns:
            True if the row matched and was written
        """
        result = await self.session.execute(
            update(self.model)
            .where(self.model.id == id, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
