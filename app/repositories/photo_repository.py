"""Profile photo repository."""

from collections import defaultdict
from typing import Collection, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database import Photo
from app.repositories.base import SQLModelRepository
from app.core.logging import get_logger

logger = get_logger(__name__)


class PhotoRepository(SQLModelRepository[Photo]):
    """Repository for Photo rows, always read in display order."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Photo)

    async def create_many(self, user_id: int, urls: List[str], commit: bool = False) -> List[Photo]:
        """
        Attach photos to a user in the given order.

        Args:
            user_id: Owner of the photos
            urls: Photo URLs; the first becomes the primary photo
            commit: Commit immediately; otherwise only flush

        Returns:
            Created photos
        """
        photos = [
            Photo(user_id=user_id, url=url, display_order=index + 1, is_primary=index == 0)
            for index, url in enumerate(urls)
        ]
        if not photos:
            return photos

        try:
            self.session.add_all(photos)
            if commit:
                await self.session.commit()
            else:
                await self.session.flush()

        except Exception as e:
            await self.session.rollback()
            logger.error("Error creating photos", user_id=user_id, error=str(e), exc_info=True)
            raise

        logger.debug("Photos created", user_id=user_id, count=len(photos))
        return photos

    async def list_by_user(self, user_id: int) -> List[Photo]:
        result = await self.session.execute(
            select(Photo)
            .where(Photo.user_id == user_id)
            .order_by(Photo.display_order, Photo.id)
        )
        return list(result.scalars().all())

    async def list_by_user_ids(self, user_ids: Collection[int]) -> Dict[int, List[Photo]]:
        """
        Photos for a page of users in one query.

        Returns:
            Mapping of user ID to that user's photos; users without photos
            are absent
        """
        if not user_ids:
            return {}

        result = await self.session.execute(
            select(Photo)
            .where(Photo.user_id.in_(list(user_ids)))
            .order_by(Photo.user_id, Photo.display_order, Photo.id)
        )

        photos: Dict[int, List[Photo]] = defaultdict(list)
        for photo in result.scalars().all():
            photos[photo.user_id].append(photo)
        return dict(photos)
