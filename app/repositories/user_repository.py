"""
User repository implementation with domain-specific methods.

This module extends the base repository with user-specific data access patterns.
Design Rationale:
- Extends base repository for common operations
- Candidate pool query with exclusion set and optional filters
- Popularity scan query for the batch notification fallback
"""

from typing import Collection, List, Optional, Tuple

from sqlalchemy import select, func, and_, exists
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database import User, Preference, Polarity, PopularityNotification
from app.repositories.base import SQLModelRepository
from app.core.logging import get_logger

logger = get_logger(__name__)


class UserRepository(SQLModelRepository[User]):
    """Repository for User entity with domain-specific methods."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get a user by login email.

        Args:
            email: Normalized (lower-case) email

        Returns:
            User or None if no account uses the email
        """
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_active(self, user_id: int) -> Optional[User]:
        """Get a user only if the profile is active."""
        user = await self.get_by_id(user_id)
        if user is None or not user.is_active:
            return None
        return user

    async def find_candidates(
        self,
        user_id: int,
        exclude_ids: Collection[int],
        gender: Optional[str] = None,
        min_age: Optional[int] = None,
        max_age: Optional[int] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        """
        Random page of active users eligible to be shown to user_id.

        Args:
            user_id: ID of the requesting user (never returned)
            exclude_ids: IDs already liked or disliked
            gender: Optional exact gender filter
            min_age: Optional inclusive lower age bound
            max_age: Optional inclusive upper age bound
            skip: Number of rows to skip
            limit: Maximum number of rows to return

        Returns:
            Tuple of (users in random order, size of the full filtered pool)
        """
        try:
            conditions = [User.id != user_id, User.is_active == True]  # noqa: E712

            if exclude_ids:
                conditions.append(User.id.not_in(list(exclude_ids)))
            if gender is not None:
                conditions.append(User.gender == gender)
            if min_age is not None:
                conditions.append(User.age >= min_age)
            if max_age is not None:
                conditions.append(User.age <= max_age)

            pool = and_(*conditions)

            total_result = await self.session.execute(
                select(func.count(User.id)).where(pool)
            )
            total = total_result.scalar() or 0

            query = (
                select(User)
                .where(pool)
                .order_by(func.random())
                .offset(skip)
                .limit(limit)
            )

            result = await self.session.execute(query)
            users = list(result.scalars().all())

            logger.debug(
                "Candidates retrieved",
                user_id=user_id,
                excluded=len(exclude_ids),
                count=len(users),
                total=total,
                skip=skip,
                limit=limit
            )

            return users, total

        except Exception as e:
            logger.error(
                "Error retrieving candidates",
                user_id=user_id,
                error=str(e),
                exc_info=True
            )
            raise

    async def get_popular_without_notification(
        self,
        threshold: int
    ) -> List[Tuple[User, int]]:
        """
        Users with at least `threshold` received likes and no alert on record.

        Args:
            threshold: Minimum received-like count

        Returns:
            List of (user, received like count), most liked first
        """
        try:
            like_count = func.count(Preference.id).label("like_count")
            notified = exists().where(PopularityNotification.user_id == User.id)

            query = (
                select(User, like_count)
                .join(
                    Preference,
                    and_(
                        Preference.target_id == User.id,
                        Preference.polarity == Polarity.LIKE
                    )
                )
                .where(~notified)
                .group_by(User.id)
                .having(like_count >= threshold)
                .order_by(like_count.desc(), User.id)
            )

            result = await self.session.execute(query)
            rows = [(user, count) for user, count in result.all()]

            logger.debug(
                "Popular users without notification retrieved",
                threshold=threshold,
                count=len(rows)
            )

            return rows

        except Exception as e:
            logger.error(
                "Error retrieving popular users",
                threshold=threshold,
                error=str(e),
                exc_info=True
            )
            raise
