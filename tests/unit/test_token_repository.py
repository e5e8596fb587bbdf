"""
Tests for AccessTokenRepository against an in-memory database.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_token
from app.models.database import AccessToken
from app.repositories.token_repository import AccessTokenRepository
from tests import create_user, issue_token


class TestAccessTokenRepository:

    @pytest.fixture
    def repository(self, db_session: AsyncSession) -> AccessTokenRepository:
        return AccessTokenRepository(db_session)

    @pytest.fixture
    async def token(self, db_session: AsyncSession) -> AccessToken:
        user = await create_user(db_session, 1)
        plaintext = await issue_token(db_session, user)
        result = await db_session.execute(
            select(AccessToken).where(AccessToken.token_hash == hash_token(plaintext))
        )
        return result.scalar_one()

    @pytest.mark.asyncio
    async def test_get_by_hash(self, repository: AccessTokenRepository, token: AccessToken):
        assert (await repository.get_by_hash(token.token_hash)).id == token.id
        assert await repository.get_by_hash(hash_token("unknown")) is None

    @pytest.mark.asyncio
    async def test_touch_stamps_last_used(self, repository: AccessTokenRepository, token: AccessToken, db_session: AsyncSession):
        token_id = token.id
        assert token.last_used_at is None

        await repository.touch(token_id)

        db_session.expire_all()
        stamped = await repository.get_by_id(token_id)
        assert stamped.last_used_at is not None
        assert stamped.last_used_at.tzinfo is None

    @pytest.mark.asyncio
    async def test_revoke(self, repository: AccessTokenRepository, token: AccessToken):
        token_id, token_hash = token.id, token.token_hash

        assert await repository.revoke(token_id) is True
        assert await repository.get_by_hash(token_hash) is None
        assert await repository.revoke(token_id) is False
