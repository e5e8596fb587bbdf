"""
Preference repository: the store of like/dislike facts.

Design Rationale:
- One table for both polarities, so a single unique index on
  (actor_id, target_id) keeps LIKE and DISLIKE mutually exclusive
- Writes flush without committing; the preference service owns the
  transaction around check, retraction and insert
- Exclusion sets and like counts are computed in SQL
"""

from datetime import datetime
from typing import List, Optional, Set, Tuple

from sqlalchemy import select, func, and_, delete, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.models.database import Preference, Polarity, User
from app.repositories.base import SQLModelRepository
from app.core.logging import get_logger

logger = get_logger(__name__)


class PreferenceRepository(SQLModelRepository[Preference]):
    """Repository for Preference rows keyed by (actor, target)."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Preference)

    async def exists(self, actor_id: int, target_id: int, polarity: Polarity) -> bool:
        """
        Check whether the actor holds a preference of this polarity for the target.

        Args:
            actor_id: ID of the acting user
            target_id: ID of the target user
            polarity: LIKE or DISLIKE

        Returns:
            True if such a row exists
        """
        try:
            query = (
                select(func.count(Preference.id))
                .where(
                    and_(
                        Preference.actor_id == actor_id,
                        Preference.target_id == target_id,
                        Preference.polarity == polarity
                    )
                )
            )

            result = await self.session.execute(query)
            return result.scalar() > 0

        except Exception as e:
            logger.error(
                "Error checking preference existence",
                actor_id=actor_id,
                target_id=target_id,
                polarity=polarity,
                error=str(e),
                exc_info=True
            )
            raise

    async def get(self, actor_id: int, target_id: int) -> Optional[Preference]:
        """Return the pair's current preference, if any."""
        query = select(Preference).where(
            and_(Preference.actor_id == actor_id, Preference.target_id == target_id)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def add_preference(
        self,
        actor_id: int,
        target_id: int,
        polarity: Polarity,
        commit: bool = False
    ) -> Preference:
        """
        Insert a preference row with a fresh timestamp.

        Raises:
            ConflictError: The pair already holds a row; the transaction has
                been rolled back
        """
        preference = Preference(
            actor_id=actor_id,
            target_id=target_id,
            polarity=polarity,
            created_at=datetime.utcnow()
        )

        try:
            preference = await self.create(preference, commit=commit)

        except IntegrityError as e:
            logger.warning(
                "Preference pair already recorded",
                actor_id=actor_id,
                target_id=target_id,
                polarity=polarity,
                error=str(e.orig)
            )
            raise ConflictError(
                "A preference for this user was recorded concurrently",
                detail=f"actor={actor_id} target={target_id}"
            ) from e

        return preference

    async def delete(
        self,
        actor_id: int,
        target_id: int,
        polarity: Polarity,
        commit: bool = False
    ) -> bool:
        """
        Remove the pair's row if it has the given polarity.

        Returns:
            True if a row was removed
        """
        try:
            query = delete(Preference).where(
                and_(
                    Preference.actor_id == actor_id,
                    Preference.target_id == target_id,
                    Preference.polarity == polarity
                )
            )

            result = await self.session.execute(query)
            if commit:
                await self.session.commit()
            else:
                await self.session.flush()

            deleted = result.rowcount > 0

            logger.debug(
                "Preference deleted",
                actor_id=actor_id,
                target_id=target_id,
                polarity=polarity,
                deleted=deleted
            )

            return deleted

        except Exception as e:
            await self.session.rollback()
            logger.error(
                "Error deleting preference",
                actor_id=actor_id,
                target_id=target_id,
                polarity=polarity,
                error=str(e),
                exc_info=True
            )
            raise

    async def count_received_likes(self, target_id: int) -> int:
        """Number of LIKE rows pointing at the target."""
        try:
            query = (
                select(func.count(Preference.id))
                .where(
                    and_(
                        Preference.target_id == target_id,
                        Preference.polarity == Polarity.LIKE
                    )
                )
            )

            result = await self.session.execute(query)
            count = result.scalar() or 0

            logger.debug("Received likes counted", target_id=target_id, count=count)

            return count

        except Exception as e:
            logger.error(
                "Error counting received likes",
                target_id=target_id,
                error=str(e),
                exc_info=True
            )
            raise

    async def list_target_ids_by_actor(
        self,
        actor_id: int,
        polarity: Optional[Polarity] = None
    ) -> Set[int]:
        """
        IDs of users the actor has acted on.

        Args:
            actor_id: ID of the acting user
            polarity: Restrict to LIKE or DISLIKE; both when omitted

        Returns:
            Set of target user IDs
        """
        query = select(Preference.target_id).where(Preference.actor_id == actor_id)
        if polarity is not None:
            query = query.where(Preference.polarity == polarity)

        result = await self.session.execute(query)
        return set(result.scalars().all())

    async def list_liked_users(
        self,
        actor_id: int,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Tuple[User, datetime]], int]:
        """
        Users the actor has liked, most recent like first.

        Args:
            actor_id: ID of the acting user
            skip: Number of rows to skip
            limit: Maximum number of rows to return

        Returns:
            Tuple of ([(user, liked_at), ...], total liked count)
        """
        try:
            liked = and_(
                Preference.actor_id == actor_id,
                Preference.polarity == Polarity.LIKE
            )

            total_result = await self.session.execute(
                select(func.count(Preference.id)).where(liked)
            )
            total = total_result.scalar() or 0

            query = (
                select(User, Preference.created_at)
                .join(Preference, Preference.target_id == User.id)
                .where(liked)
                .order_by(desc(Preference.created_at), desc(Preference.id))
                .offset(skip)
                .limit(limit)
            )

            result = await self.session.execute(query)
            rows = [(user, liked_at) for user, liked_at in result.all()]

            logger.debug(
                "Liked users retrieved",
                actor_id=actor_id,
                count=len(rows),
                total=total
            )

            return rows, total

        except Exception as e:
            logger.error(
                "Error retrieving liked users",
                actor_id=actor_id,
                error=str(e),
                exc_info=True
            )
            raise
