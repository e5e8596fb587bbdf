"""
Preference Service: records likes and dislikes.

Design Rationale:
- Validation happens before any write (self-reference, target existence)
- Duplicate check, opposite-polarity retraction and insert share one
  transaction; the unique pair index is the backstop for concurrent calls
- The popularity check runs after a LIKE is committed, so the count it sees
  includes the new row
"""

from datetime import datetime
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    SelfReferenceError,
    NotFoundError,
    DuplicateError,
    ConflictError,
)
from app.core.logging import get_logger
from app.models.database import Preference, Polarity, User
from app.repositories.preference_repository import PreferenceRepository
from app.repositories.user_repository import UserRepository
from app.services.popularity_watcher import PopularityWatcher

logger = get_logger(__name__)

_VERBS = {Polarity.LIKE: ("like", "liked"), Polarity.DISLIKE: ("dislike", "disliked")}


class PreferenceService:
    """Orchestrates like/dislike requests on top of the preference store."""

    def __init__(
        self,
        session: AsyncSession,
        preference_repository: PreferenceRepository,
        user_repository: UserRepository,
        popularity_watcher: PopularityWatcher
    ):
        self.session = session
        self.preference_repository = preference_repository
        self.user_repository = user_repository
        self.popularity_watcher = popularity_watcher

    async def record_preference(
        self,
        actor_id: int,
        target_id: int,
        polarity: Polarity
    ) -> Preference:
        """
        Record that actor likes or dislikes target.

        Args:
            actor_id: ID of the authenticated user
            target_id: ID of the user being rated
            polarity: LIKE or DISLIKE

        Returns:
            The newly created preference

        Raises:
            SelfReferenceError: actor and target are the same user
            NotFoundError: target is missing or inactive
            DuplicateError: the same polarity is already recorded
            ConflictError: a concurrent request won the pair
        """
        verb, past = _VERBS[polarity]

        if actor_id == target_id:
            raise SelfReferenceError(f"You cannot {verb} yourself")

        target = await self.user_repository.get_active(target_id)
        if target is None:
            raise NotFoundError("User not found", detail=f"user={target_id}")

        if await self.preference_repository.exists(actor_id, target_id, polarity):
            raise DuplicateError(f"You have already {past} this user")

        try:
            retracted = await self.preference_repository.delete(
                actor_id, target_id, polarity.opposite
            )
            preference = await self.preference_repository.add_preference(
                actor_id, target_id, polarity
            )
            await self.session.commit()

        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Concurrent preference write rejected",
                actor_id=actor_id,
                target_id=target_id,
                polarity=polarity,
                error=str(e.orig)
            )
            raise ConflictError(
                "A preference for this user was recorded concurrently",
                detail=f"actor={actor_id} target={target_id}"
            ) from e

        logger.info(
            "Preference recorded",
            actor_id=actor_id,
            target_id=target_id,
            polarity=polarity,
            retracted=retracted
        )

        if polarity is Polarity.LIKE:
            await self._check_popularity(target_id)
            # A rolled-back alert record expires every object in the session
            await self.session.refresh(preference)

        return preference

    async def like(self, actor_id: int, target_id: int) -> Preference:
        return await self.record_preference(actor_id, target_id, Polarity.LIKE)

    async def dislike(self, actor_id: int, target_id: int) -> Preference:
        return await self.record_preference(actor_id, target_id, Polarity.DISLIKE)

    async def get_liked_users(
        self,
        actor_id: int,
        page: int = 1,
        per_page: int = 20
    ) -> Tuple[List[Tuple[User, datetime]], int]:
        """Page through the users actor has liked, newest first."""
        return await self.preference_repository.list_liked_users(
            actor_id,
            skip=(page - 1) * per_page,
            limit=per_page
        )

    async def _check_popularity(self, target_id: int) -> None:
        # The like is already committed; a failing check must not undo it.
        try:
            await self.popularity_watcher.check_and_notify(target_id)
        except Exception as e:
            logger.error(
                "Popularity check failed",
                target_id=target_id,
                error=str(e),
                exc_info=True
            )
