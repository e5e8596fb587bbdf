"""
Popularity notification repository.

The existence of a row for a user is the idempotency guard for admin alerts;
the unique index on user_id settles concurrent writers.
"""

from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.models.database import PopularityNotification
from app.repositories.base import SQLModelRepository
from app.core.logging import get_logger

logger = get_logger(__name__)


class NotificationRepository(SQLModelRepository[PopularityNotification]):
    """Repository for PopularityNotification records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PopularityNotification)

    async def exists_for_user(self, user_id: int) -> bool:
        """True if an alert about this user has already been recorded."""
        query = (
            select(func.count(PopularityNotification.id))
            .where(PopularityNotification.user_id == user_id)
        )
        result = await self.session.execute(query)
        return result.scalar() > 0

    async def record(
        self,
        user_id: int,
        like_count: int,
        recipient: str
    ) -> PopularityNotification:
        """
        Persist the record of a delivered alert and commit.

        Raises:
            ConflictError: Another dispatch already recorded an alert for
                this user
        """
        notification = PopularityNotification(
            user_id=user_id,
            like_count=like_count,
            recipient=recipient,
            sent_at=datetime.utcnow()
        )

        try:
            self.session.add(notification)
            await self.session.commit()
            await self.session.refresh(notification)

        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError(
                "Popularity notification already recorded",
                detail=f"user={user_id}"
            ) from e

        logger.info(
            "Popularity notification recorded",
            user_id=user_id,
            like_count=like_count,
            recipient=recipient
        )

        return notification
