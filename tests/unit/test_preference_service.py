"""
Tests for PreferenceService against an in-memory database.

Covers the like/dislike state machine and the popularity trigger that runs
after each committed like.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import SelfReferenceError, NotFoundError, DuplicateError, ConflictError
from app.models.database import Preference, Polarity, PopularityNotification
from app.repositories import (
    PreferenceRepository,
    UserRepository,
    NotificationRepository,
)
from app.services.notification_dispatcher import NotificationDispatcher, DispatchingEventSink
from app.services.popularity_watcher import PopularityWatcher
from app.services.preference_service import PreferenceService
from tests import create_users, add_preferences

ADMIN = "admin@example.com"


def build_service(session: AsyncSession, mailer, threshold: int = 50) -> PreferenceService:
    dispatcher = NotificationDispatcher(session=session, mailer=mailer, recipient=ADMIN)
    watcher = PopularityWatcher(
        PreferenceRepository(session),
        NotificationRepository(session),
        UserRepository(session),
        DispatchingEventSink(dispatcher),
        threshold=threshold
    )
    return PreferenceService(
        session,
        PreferenceRepository(session),
        UserRepository(session),
        watcher
    )


async def count_preferences(session: AsyncSession, actor_id: int, target_id: int) -> int:
    result = await session.execute(
        select(func.count(Preference.id)).where(
            Preference.actor_id == actor_id,
            Preference.target_id == target_id
        )
    )
    return result.scalar()


async def count_notifications(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(PopularityNotification.id)))
    return result.scalar()


class TestPreferenceService:
    """Test suite for like/dislike recording."""

    @pytest.fixture
    async def users(self, db_session: AsyncSession):
        return await create_users(db_session, 3)

    @pytest.fixture
    def service(self, db_session: AsyncSession, mailer) -> PreferenceService:
        return build_service(db_session, mailer)

    @pytest.mark.asyncio
    async def test_like_creates_preference(self, service: PreferenceService, users, db_session: AsyncSession):
        preference = await service.like(users[0].id, users[1].id)

        assert preference.id is not None
        assert preference.actor_id == users[0].id
        assert preference.target_id == users[1].id
        assert preference.polarity == Polarity.LIKE
        assert await count_preferences(db_session, users[0].id, users[1].id) == 1

    @pytest.mark.asyncio
    async def test_duplicate_like_rejected(self, service: PreferenceService, users, db_session: AsyncSession):
        actor_id, target_id = users[0].id, users[1].id
        await service.like(actor_id, target_id)

        with pytest.raises(DuplicateError, match="You have already liked this user"):
            await service.like(actor_id, target_id)

        assert await count_preferences(db_session, actor_id, target_id) == 1

    @pytest.mark.asyncio
    async def test_rejection_leaves_session_objects_loaded(self, service: PreferenceService, users):
        await service.like(users[0].id, users[1].id)

        with pytest.raises(DuplicateError):
            await service.like(users[0].id, users[1].id)

        assert users[0].name == "Test User 0"

    @pytest.mark.asyncio
    async def test_concurrent_insert_raises_conflict(self, service: PreferenceService, users, db_session: AsyncSession):
        """The unique pair index rejects a write that passed the duplicate check."""
        actor_id, target_id = users[0].id, users[1].id
        await add_preferences(db_session, [actor_id], target_id)

        with patch.object(service.preference_repository, "exists", AsyncMock(return_value=False)):
            with pytest.raises(ConflictError):
                await service.like(actor_id, target_id)

        assert await count_preferences(db_session, actor_id, target_id) == 1

    @pytest.mark.asyncio
    async def test_duplicate_dislike_rejected(self, service: PreferenceService, users):
        await service.dislike(users[0].id, users[1].id)

        with pytest.raises(DuplicateError, match="You have already disliked this user"):
            await service.dislike(users[0].id, users[1].id)

    @pytest.mark.asyncio
    async def test_dislike_replaces_like(self, service: PreferenceService, users, db_session: AsyncSession):
        """Flipping polarity keeps exactly one row for the pair."""
        actor_id, target_id = users[0].id, users[1].id
        await service.like(actor_id, target_id)
        await service.dislike(actor_id, target_id)

        current = await PreferenceRepository(db_session).get(actor_id, target_id)
        assert current.polarity == Polarity.DISLIKE
        assert await count_preferences(db_session, actor_id, target_id) == 1

        await service.like(actor_id, target_id)

        db_session.expire_all()
        current = await PreferenceRepository(db_session).get(actor_id, target_id)
        assert current.polarity == Polarity.LIKE
        assert await count_preferences(db_session, actor_id, target_id) == 1

    @pytest.mark.asyncio
    async def test_preferences_are_directional(self, service: PreferenceService, users, db_session: AsyncSession):
        await service.like(users[0].id, users[1].id)
        await service.dislike(users[1].id, users[0].id)

        assert await count_preferences(db_session, users[0].id, users[1].id) == 1
        assert await count_preferences(db_session, users[1].id, users[0].id) == 1

    @pytest.mark.asyncio
    async def test_cannot_like_yourself(self, service: PreferenceService, users, db_session: AsyncSession):
        with pytest.raises(SelfReferenceError, match="You cannot like yourself"):
            await service.like(users[0].id, users[0].id)

        with pytest.raises(SelfReferenceError, match="You cannot dislike yourself"):
            await service.dislike(users[0].id, users[0].id)

        assert await count_preferences(db_session, users[0].id, users[0].id) == 0

    @pytest.mark.asyncio
    async def test_unknown_target(self, service: PreferenceService, users):
        with pytest.raises(NotFoundError):
            await service.like(users[0].id, 9999)

    @pytest.mark.asyncio
    async def test_inactive_target(self, service: PreferenceService, users, db_session: AsyncSession):
        users[2].is_active = False
        db_session.add(users[2])
        await db_session.commit()

        with pytest.raises(NotFoundError):
            await service.dislike(users[0].id, users[2].id)

    @pytest.mark.asyncio
    async def test_get_liked_users_newest_first(self, service: PreferenceService, users):
        await service.like(users[0].id, users[1].id)
        await service.like(users[0].id, users[2].id)
        await service.dislike(users[1].id, users[2].id)

        rows, total = await service.get_liked_users(users[0].id, page=1, per_page=10)

        assert total == 2
        assert [user.id for user, _ in rows] == [users[2].id, users[1].id]

        rows, total = await service.get_liked_users(users[0].id, page=2, per_page=1)
        assert total == 2
        assert [user.id for user, _ in rows] == [users[1].id]


class TestPopularityTrigger:
    """The 50th like alerts the admin exactly once."""

    @pytest.fixture
    async def crowd(self, db_session: AsyncSession):
        # users[0] is the target; users[1:] are admirers
        return await create_users(db_session, 52)

    @pytest.mark.asyncio
    async def test_alert_sent_once_at_threshold(self, db_session: AsyncSession, mailer, crowd):
        service = build_service(db_session, mailer)
        target = crowd[0]
        await add_preferences(db_session, [u.id for u in crowd[1:49]], target.id)

        await service.like(crowd[49].id, target.id)  # 49th like
        assert mailer.sent == []

        await service.like(crowd[50].id, target.id)  # 50th like
        assert len(mailer.sent) == 1
        recipient, subject, body = mailer.sent[0]
        assert recipient == ADMIN
        assert subject == "User Has Received 50+ Likes"
        assert f"(ID: {target.id})" in body

        await service.like(crowd[51].id, target.id)  # 51st like
        assert len(mailer.sent) == 1
        assert await count_notifications(db_session) == 1

    @pytest.mark.asyncio
    async def test_dislikes_do_not_count(self, db_session: AsyncSession, mailer, crowd):
        service = build_service(db_session, mailer)
        target = crowd[0]
        await add_preferences(db_session, [u.id for u in crowd[1:50]], target.id, Polarity.DISLIKE)

        await service.like(crowd[50].id, target.id)

        assert mailer.sent == []

    @pytest.mark.asyncio
    async def test_delivery_failure_keeps_like(self, db_session: AsyncSession, mailer, crowd):
        """A failed alert leaves the like in place and no record behind."""
        service = build_service(db_session, mailer)
        target = crowd[0]
        await add_preferences(db_session, [u.id for u in crowd[1:50]], target.id)
        mailer.fail = True

        preference = await service.like(crowd[50].id, target.id)

        assert preference.id is not None
        assert mailer.sent == []
        assert await count_notifications(db_session) == 0
        assert await count_preferences(db_session, crowd[50].id, target.id) == 1

        # Next like retries since nothing was recorded
        mailer.fail = False
        await service.like(crowd[51].id, target.id)

        assert len(mailer.sent) == 1
        assert mailer.sent[0][1] == "User Has Received 51+ Likes"
        assert await count_notifications(db_session) == 1

    @pytest.mark.asyncio
    async def test_lost_alert_race_returns_loaded_preference(self, db_session: AsyncSession, mailer, crowd):
        """A concurrent dispatch recorded the alert first; the like still comes back intact."""
        service = build_service(db_session, mailer)
        target_id, actor_id = crowd[0].id, crowd[50].id
        await add_preferences(db_session, [u.id for u in crowd[1:50]], target_id)
        db_session.add(PopularityNotification(user_id=target_id, like_count=50, recipient=ADMIN))
        await db_session.commit()

        with patch.object(NotificationRepository, "exists_for_user", AsyncMock(return_value=False)):
            preference = await service.like(actor_id, target_id)

        assert preference.id is not None
        assert preference.actor_id == actor_id
        assert preference.target_id == target_id
        assert preference.polarity == Polarity.LIKE
        assert len(mailer.sent) == 1
        assert await count_notifications(db_session) == 1
        assert await count_preferences(db_session, actor_id, target_id) == 1
