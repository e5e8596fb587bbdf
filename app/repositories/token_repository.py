"""Access token repository for bearer authentication."""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database import AccessToken
from app.repositories.base import SQLModelRepository
from app.core.logging import get_logger

logger = get_logger(__name__)


class AccessTokenRepository(SQLModelRepository[AccessToken]):
    """Stores SHA-256 digests of issued bearer tokens."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AccessToken)

    async def get_by_hash(self, token_hash: str) -> Optional[AccessToken]:
        result = await self.session.execute(
            select(AccessToken).where(AccessToken.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def touch(self, token_id: int) -> None:
        """Stamp last_used_at and commit."""
        await self.session.execute(
            update(AccessToken)
            .where(AccessToken.id == token_id)
            .values(last_used_at=datetime.utcnow())
        )
        await self.session.commit()

    async def revoke(self, token_id: int) -> bool:
        """Delete a token; True if it existed."""
        try:
            result = await self.session.execute(
                delete(AccessToken).where(AccessToken.id == token_id)
            )
            await self.session.commit()

            revoked = result.rowcount > 0
            logger.info("Access token revoked", token_id=token_id, revoked=revoked)
            return revoked

        except Exception as e:
            await self.session.rollback()
            logger.error("Error revoking access token", token_id=token_id, error=str(e), exc_info=True)
            raise
