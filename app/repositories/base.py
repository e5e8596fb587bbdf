"""
Base repository pattern implementation.

This module defines the abstract base repository and common patterns.
Design Rationale:
- Abstract base class defines the interface contract
- Generic type hints for type safety
- Callers decide whether a write commits or only flushes, so a service can
  group several writes into one transaction
"""

from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel
from sqlalchemy import select

from app.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=SQLModel)


class BaseRepository(Generic[T], ABC):
    """
    Abstract base repository implementing common persistence operations.

    Type Parameters:
        T: The SQLModel type this repository manages
    """

    def __init__(self, session: AsyncSession, model_class: type[T]):
        """
        Initialize the repository.

        Args:
            session: Async database session
            model_class: The SQLModel class this repository manages
        """
        self.session = session
        self.model_class = model_class
        self.logger = get_logger(f"{__name__}.{model_class.__name__}")

    @abstractmethod
    async def get_by_id(self, id: int) -> Optional[T]:
        """Get entity by primary key."""
        pass

    @abstractmethod
    async def create(self, entity: T, commit: bool = True) -> T:
        """Create a new entity."""
        pass


class SQLModelRepository(BaseRepository[T]):
    """
    Concrete implementation of BaseRepository using SQLModel.

    Errors are logged with entity context and re-raised; rollback happens
    here only for writes this repository committed itself.
    """

    async def get_by_id(self, id: int) -> Optional[T]:
        """
        Get entity by primary key.

        Args:
            id: Primary key value

        Returns:
            Entity instance or None if not found
        """
        try:
            query = select(self.model_class).where(self.model_class.id == id)
            result = await self.session.execute(query)
            entity = result.scalar_one_or_none()

            if entity:
                self.logger.debug("Entity retrieved", entity_id=id, entity_type=self.model_class.__name__)
            else:
                self.logger.info("Entity not found", entity_id=id, entity_type=self.model_class.__name__)

            return entity

        except Exception as e:
            self.logger.error(
                "Error retrieving entity",
                entity_id=id,
                entity_type=self.model_class.__name__,
                error=str(e),
                exc_info=True
            )
            raise

    async def create(self, entity: T, commit: bool = True) -> T:
        """
        Create a new entity.

        Args:
            entity: Entity instance to create
            commit: Commit immediately; otherwise only flush so the caller
                owns the transaction

        Returns:
            Created entity with generated ID
        """
        try:
            self.session.add(entity)
            if commit:
                await self.session.commit()
            else:
                await self.session.flush()
            await self.session.refresh(entity)

            self.logger.info(
                "Entity created",
                entity_id=getattr(entity, 'id', None),
                entity_type=self.model_class.__name__
            )

            return entity

        except Exception as e:
            await self.session.rollback()
            self.logger.error(
                "Error creating entity",
                entity_type=self.model_class.__name__,
                error=str(e),
                exc_info=True
            )
            raise
