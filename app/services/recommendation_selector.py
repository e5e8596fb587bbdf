"""
Recommendation Selector: random eligible candidates for a user.

Design Rationale:
- Exclusion set built from the preference store (liked and disliked targets)
- Filters and exclusion are pushed into a single SQL query
- Order is re-randomized on every request, so paging is sampling rather
  than stable browsing; totals still describe the whole filtered pool
"""

from dataclasses import dataclass
from typing import List, Optional, Set

from app.core.logging import get_logger
from app.models.database import Polarity, User
from app.models.schemas import PageMeta
from app.repositories.preference_repository import PreferenceRepository
from app.repositories.user_repository import UserRepository

logger = get_logger(__name__)


@dataclass
class CandidateFilters:
    """Optional filters; each age bound applies independently."""
    gender: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None


@dataclass
class CandidateSelection:
    """A page of candidates plus metadata over the full pool."""
    users: List[User]
    meta: PageMeta


class RecommendationSelector:
    """Selects a randomized page of users the requester has not rated yet."""

    def __init__(
        self,
        user_repository: UserRepository,
        preference_repository: PreferenceRepository,
        max_page_size: int = 100
    ):
        self.user_repository = user_repository
        self.preference_repository = preference_repository
        self.max_page_size = max_page_size

    async def build_exclusion_set(self, user_id: int) -> Set[int]:
        """Targets the user has liked or disliked."""
        liked = await self.preference_repository.list_target_ids_by_actor(user_id, Polarity.LIKE)
        disliked = await self.preference_repository.list_target_ids_by_actor(user_id, Polarity.DISLIKE)
        return liked | disliked

    async def select_candidates(
        self,
        user: User,
        filters: Optional[CandidateFilters] = None,
        page: int = 1,
        page_size: int = 20
    ) -> CandidateSelection:
        """
        Return a random page of eligible candidates.

        Args:
            user: The requesting user
            filters: Optional gender and age bounds
            page: 1-based page number
            page_size: Candidates per page, capped at max_page_size

        Returns:
            CandidateSelection with users and pagination metadata
        """
        filters = filters or CandidateFilters()
        page = max(1, page)
        page_size = min(max(1, page_size), self.max_page_size)

        exclude_ids = await self.build_exclusion_set(user.id)

        users, total = await self.user_repository.find_candidates(
            user_id=user.id,
            exclude_ids=exclude_ids,
            gender=filters.gender,
            min_age=filters.min_age,
            max_age=filters.max_age,
            skip=(page - 1) * page_size,
            limit=page_size
        )

        logger.info(
            "Candidates selected",
            user_id=user.id,
            page=page,
            page_size=page_size,
            returned=len(users),
            total=total
        )

        return CandidateSelection(users=users, meta=PageMeta.build(page, page_size, total))
