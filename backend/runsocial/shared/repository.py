"""
Base repository with common CRUD operations.

Provides generic database operations for all feature repositories.
Uses SQLAlchemy async session for non-blocking database access.

Usage:
    class AchievementRepository(BaseRepository[Achievement]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, Achievement)

        async def get_by_name(self, name: str) -> Achievement | None:
            return await self.get_by(name=name)
"""

from typing import TypeVar, Generic, Type
from sqlalchemy import select, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository for database operations.

    Provides common CRUD methods that can be inherited by feature repositories.
    All methods are async for use with AsyncSession.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        """
        Initialize repository.

        Args:
            db: Async database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    async def get_by_id(self, id: str | int) -> T | None:
        """
        Get entity by primary key ID.

        Args:
            id: Primary key value (string UUID or integer)

        Returns:
            Entity if found, None otherwise
        """
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_by(self, **kwargs) -> T | None:
        """
        Get single entity by arbitrary field values.

        Args:
            **kwargs: Field name-value pairs to filter by

        Returns:
            First matching entity or None
        """
        query = select(self.model)
        for key, value in kwargs.items():
            query = query.where(getattr(self.model, key) == value)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(self, **kwargs) -> T:
        """
        Create new entity.

        Args:
            **kwargs: Field values for new entity

        Returns:
            Created entity with generated ID
        """
        entity = self.model(**kwargs)
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def reload(self, entity: T) -> T:
        """
        Re-read entity state from the database.

        Needed after bulk UPDATE statements, which bypass the identity map.
        """
        await self.db.refresh(entity)
        return entity

    async def count(self, **kwargs) -> int:
        """
        Count entities matching criteria.

        Args:
            **kwargs: Field name-value pairs to filter by

        Returns:
            Number of matching entities
        """
        query = select(func.count()).select_from(self.model)
        for key, value in kwargs.items():
            query = query.where(getattr(self.model, key) == value)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def insert_ignore(self, index_elements: list[str], **values) -> None:
        """
        INSERT ... ON CONFLICT DO NOTHING.

        Creates the row unless one with the same unique key already exists.
        Safe under concurrent callers: the database resolves the race.

        Args:
            index_elements: Columns of the unique constraint
            **values: Column values for the new row
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(self.model)
        elif dialect == "sqlite":
            stmt = sqlite.insert(self.model)
        else:
            raise NotImplementedError(f"insert_ignore is not supported on {dialect}")

        stmt = stmt.values(**values).on_conflict_do_nothing(index_elements=index_elements)
        await self.db.execute(stmt)
