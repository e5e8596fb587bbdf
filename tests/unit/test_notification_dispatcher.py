"""
Tests for NotificationDispatcher: send first, record second, never twice.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DeliveryError
from app.models.database import PopularityNotification
from app.repositories.notification_repository import NotificationRepository
from app.services.events import PopularityEvent
from app.services.notification_dispatcher import (
    NotificationDispatcher,
    DispatchingEventSink,
    render_popularity_alert,
)
from tests import create_user

ADMIN = "admin@example.com"


async def notification_count(session: AsyncSession, user_id: int) -> int:
    result = await session.execute(
        select(func.count(PopularityNotification.id)).where(PopularityNotification.user_id == user_id)
    )
    return result.scalar()


class TestRenderPopularityAlert:

    @pytest.mark.asyncio
    async def test_subject_and_body(self, db_session: AsyncSession):
        user = await create_user(db_session, 7, location=None)

        subject, body = render_popularity_alert(user, 50)

        assert subject == "User Has Received 50+ Likes"
        assert body.startswith("Hello Admin,")
        assert f"User {user.name} (ID: {user.id}) has received 50 likes!" in body
        assert "Location: Not specified" in body
        assert f"Email: {user.email}" in body


class TestNotificationDispatcher:
    """Test suite for NotificationDispatcher."""

    @pytest.fixture
    def dispatcher(self, db_session: AsyncSession, mailer) -> NotificationDispatcher:
        return NotificationDispatcher(session=db_session, mailer=mailer, recipient=ADMIN)

    @pytest.fixture
    async def user(self, db_session: AsyncSession):
        return await create_user(db_session, 1)

    @pytest.mark.asyncio
    async def test_notify_sends_and_records(self, dispatcher, mailer, db_session: AsyncSession, user):
        notification = await dispatcher.notify(user, 50)

        assert notification is not None
        assert notification.user_id == user.id
        assert notification.like_count == 50
        assert notification.recipient == ADMIN
        assert notification.sent_at is not None
        assert len(mailer.sent) == 1
        assert mailer.sent[0][0] == ADMIN
        assert await notification_count(db_session, user.id) == 1

    @pytest.mark.asyncio
    async def test_failed_delivery_writes_no_record(self, dispatcher, mailer, db_session: AsyncSession, user):
        mailer.fail = True

        with pytest.raises(DeliveryError):
            await dispatcher.notify(user, 50)

        assert await notification_count(db_session, user.id) == 0

    @pytest.mark.asyncio
    async def test_existing_record_skips_send(self, dispatcher, mailer, db_session: AsyncSession, user):
        await dispatcher.notify(user, 50)

        assert await dispatcher.notify(user, 51) is None

        assert len(mailer.sent) == 1
        assert await notification_count(db_session, user.id) == 1

    @pytest.mark.asyncio
    async def test_lost_record_race(self, dispatcher, mailer, db_session: AsyncSession, user):
        """Both dispatches pass the existence check; the unique record settles it."""
        user_id = user.id
        db_session.add(PopularityNotification(user_id=user_id, like_count=50, recipient=ADMIN))
        await db_session.commit()

        with patch.object(NotificationRepository, "exists_for_user", AsyncMock(return_value=False)):
            assert await dispatcher.notify(user, 51) is None

        assert len(mailer.sent) == 1
        assert await notification_count(db_session, user_id) == 1

    @pytest.mark.asyncio
    async def test_handle_resolves_user(self, dispatcher, mailer, user):
        notification = await dispatcher.handle(PopularityEvent(user_id=user.id, like_count=52))

        assert notification.like_count == 52
        assert "52 likes" in mailer.sent[0][2]

    @pytest.mark.asyncio
    async def test_handle_unknown_user(self, dispatcher, mailer):
        assert await dispatcher.handle(PopularityEvent(user_id=9999, like_count=50)) is None
        assert mailer.sent == []


class TestDispatchingEventSink:

    @pytest.mark.asyncio
    async def test_delivery_failure_is_absorbed(self, db_session: AsyncSession, mailer):
        user = await create_user(db_session, 1)
        mailer.fail = True
        sink = DispatchingEventSink(NotificationDispatcher(session=db_session, mailer=mailer, recipient=ADMIN))

        assert await sink.publish(PopularityEvent(user_id=user.id, like_count=50)) is False

        assert await notification_count(db_session, user.id) == 0

    @pytest.mark.asyncio
    async def test_publish_delivers(self, db_session: AsyncSession, mailer):
        user = await create_user(db_session, 1)
        sink = DispatchingEventSink(NotificationDispatcher(session=db_session, mailer=mailer, recipient=ADMIN))

        assert await sink.publish(PopularityEvent(user_id=user.id, like_count=50)) is True

        assert len(mailer.sent) == 1
        assert await notification_count(db_session, user.id) == 1
