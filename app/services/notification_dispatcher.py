"""
Notification Dispatcher: delivers popularity alerts to the admin.

Design Rationale:
- The record is written strictly after a confirmed send, so a failed alert
  leaves nothing behind and the batch scan will try again
- A pre-send existence check narrows the window in which two dispatches for
  the same user can both send
- The unique index on the record resolves whatever race remains; the losing
  dispatch has sent a duplicate email, which is logged and accepted
"""

from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, DeliveryError
from app.core.logging import get_logger
from app.models.database import User, PopularityNotification
from app.repositories.notification_repository import NotificationRepository
from app.repositories.user_repository import UserRepository
from app.services.events import PopularityEvent, PopularityEventSink
from app.services.mailer import Mailer

logger = get_logger(__name__)


def render_popularity_alert(user: User, like_count: int) -> Tuple[str, str]:
    """
    Build the subject and plain-text body of the admin alert.

    Args:
        user: The popular user
        like_count: Received likes at the time of the check

    Returns:
        Tuple of (subject, body)
    """
    subject = f"User Has Received {like_count}+ Likes"
    body = "\n".join([
        "Hello Admin,",
        "",
        f"User {user.name} (ID: {user.id}) has received {like_count} likes!",
        "",
        "Profile Details:",
        f"  Name: {user.name}",
        f"  Age: {user.age}",
        f"  Gender: {user.gender}",
        f"  Location: {user.location or 'Not specified'}",
        f"  Total Likes: {like_count}",
        f"  Email: {user.email}",
        "",
        "This is an automated notification.",
    ])
    return subject, body


class NotificationDispatcher:
    """Sends the admin alert for a popular user and records it."""

    def __init__(self, session: AsyncSession, mailer: Mailer, recipient: str):
        self.session = session
        self.mailer = mailer
        self.recipient = recipient
        self.user_repository = UserRepository(session)
        self.notification_repository = NotificationRepository(session)

    async def notify(self, user: User, like_count: int) -> Optional[PopularityNotification]:
        """
        Send the alert, then persist the record.

        Args:
            user: The popular user
            like_count: Received likes carried by the event

        Returns:
            The new record, or None when another dispatch already recorded one

        Raises:
            DeliveryError: The transport failed; nothing was recorded
        """
        # Losing the record race rolls back the session and expires `user`
        user_id = user.id

        if await self.notification_repository.exists_for_user(user_id):
            logger.info("Popularity alert already sent, skipping", user_id=user_id)
            return None

        subject, body = render_popularity_alert(user, like_count)

        try:
            await self.mailer.send(self.recipient, subject, body)
        except DeliveryError:
            logger.error(
                "Popularity alert delivery failed",
                user_id=user_id,
                like_count=like_count,
                recipient=self.recipient
            )
            raise

        try:
            notification = await self.notification_repository.record(
                user_id=user_id,
                like_count=like_count,
                recipient=self.recipient
            )
        except ConflictError:
            logger.warning(
                "Duplicate popularity alert sent by concurrent dispatch",
                user_id=user_id,
                like_count=like_count
            )
            return None

        logger.info(
            "Popularity alert dispatched",
            user_id=user_id,
            like_count=like_count,
            recipient=self.recipient,
            transport=self.mailer.transport
        )

        return notification

    async def handle(self, event: PopularityEvent) -> Optional[PopularityNotification]:
        """Resolve the event's user and notify."""
        user = await self.user_repository.get_by_id(event.user_id)
        if user is None:
            logger.warning("Popularity event for unknown user", user_id=event.user_id)
            return None

        return await self.notify(user, event.like_count)


class DispatchingEventSink(PopularityEventSink):
    """
    Delivers events in-process through a NotificationDispatcher.

    Delivery failures are logged and reported as False here; the triggering
    request never sees them and the batch scan retries later.
    """

    def __init__(self, dispatcher: NotificationDispatcher):
        self.dispatcher = dispatcher

    async def publish(self, event: PopularityEvent) -> bool:
        try:
            await self.dispatcher.handle(event)
        except DeliveryError as e:
            logger.error(
                "Popularity alert not delivered, will be retried by scan",
                user_id=event.user_id,
                like_count=event.like_count,
                error=e.message,
                detail=e.detail
            )
            return False
        return True
