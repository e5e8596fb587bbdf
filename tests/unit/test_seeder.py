"""
Tests for the demo data seeder against an in-memory database.
"""

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.core.security import verify_password
from app.models.database import Photo, Polarity, Preference, User
from app.repositories import PreferenceRepository, UserRepository
from app.services.seeder import DemoSeeder, DEMO_EMAIL, DEMO_PASSWORD


async def count(session: AsyncSession, column, *conditions) -> int:
    result = await session.execute(select(func.count(column)).where(*conditions))
    return result.scalar()


class TestDemoSeeder:

    @pytest.mark.asyncio
    async def test_run_populates_database(self, db_session: AsyncSession):
        summary = await DemoSeeder(db_session, seed=7, popular_likes=8).run(user_count=12)

        assert summary.users == 13
        assert await count(db_session, User.id) == 13
        assert await count(db_session, Photo.id) == summary.photos
        assert 13 * 3 <= summary.photos <= 13 * 5
        assert await count(db_session, Preference.id, Preference.polarity == Polarity.LIKE) == summary.likes
        assert await count(db_session, Preference.id, Preference.polarity == Polarity.DISLIKE) == summary.dislikes
        assert await count(db_session, Photo.id, Photo.is_primary.is_(True)) == 13

    @pytest.mark.asyncio
    async def test_popular_users_reach_like_target(self, db_session: AsyncSession):
        summary = await DemoSeeder(db_session, seed=3, popular_likes=8).run(user_count=12)

        assert len(summary.popular_user_ids) == 3
        repository = PreferenceRepository(db_session)
        for user_id in summary.popular_user_ids:
            # A pair already liked in the random pass still counts once
            assert await repository.count_received_likes(user_id) >= 8

    @pytest.mark.asyncio
    async def test_demo_login(self, db_session: AsyncSession):
        await DemoSeeder(db_session, seed=1).run(user_count=2)

        user = await UserRepository(db_session).get_by_email(DEMO_EMAIL)
        assert user is not None
        assert verify_password(DEMO_PASSWORD, user.password_hash)

    @pytest.mark.asyncio
    async def test_refuses_to_seed_twice(self, db_session: AsyncSession):
        await DemoSeeder(db_session, seed=1).run(user_count=2)

        with pytest.raises(ConflictError):
            await DemoSeeder(db_session, seed=2).run(user_count=2)

    @pytest.mark.asyncio
    async def test_no_self_preferences(self, db_session: AsyncSession):
        await DemoSeeder(db_session, seed=5, popular_likes=8).run(user_count=10)

        assert await count(db_session, Preference.id, Preference.actor_id == Preference.target_id) == 0
