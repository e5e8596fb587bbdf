"""
Popularity Watcher: decides when a user has become popular enough to report.

Design Rationale:
- Runs after every committed like and as a batch scan for recovery
- Only reads; the dispatcher behind the sink owns delivery and the record
- The notification-existence check makes both paths idempotent
"""

from dataclasses import dataclass
from typing import List, Optional

from app.core.logging import get_logger
from app.repositories.notification_repository import NotificationRepository
from app.repositories.preference_repository import PreferenceRepository
from app.repositories.user_repository import UserRepository
from app.services.events import PopularityEvent, PopularityEventSink

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 50


@dataclass(frozen=True)
class ScanOutcome:
    """A popular user found by the scan; delivered is None on a dry run."""
    event: PopularityEvent
    delivered: Optional[bool]


class PopularityWatcher:
    """Emits a one-time event when a user's received likes reach the threshold."""

    def __init__(
        self,
        preference_repository: PreferenceRepository,
        notification_repository: NotificationRepository,
        user_repository: UserRepository,
        sink: PopularityEventSink,
        threshold: int = DEFAULT_THRESHOLD
    ):
        self.preference_repository = preference_repository
        self.notification_repository = notification_repository
        self.user_repository = user_repository
        self.sink = sink
        self.threshold = threshold

    async def check_and_notify(self, target_id: int) -> Optional[PopularityEvent]:
        """
        Check a single user right after they received a like.

        Args:
            target_id: ID of the liked user

        Returns:
            The emitted event, or None when nothing was emitted
        """
        count = await self.preference_repository.count_received_likes(target_id)

        if count < self.threshold:
            return None

        if await self.notification_repository.exists_for_user(target_id):
            logger.debug("User already reported as popular", user_id=target_id, like_count=count)
            return None

        event = PopularityEvent(user_id=target_id, like_count=count)
        logger.info("Popularity threshold reached", user_id=target_id, like_count=count, threshold=self.threshold)
        await self.sink.publish(event)
        return event

    async def scan(self, dry_run: bool = False) -> List[ScanOutcome]:
        """
        Emit events for every popular user without an alert on record.

        Args:
            dry_run: Find users but publish nothing

        Returns:
            One outcome per popular user found, most liked first
        """
        popular = await self.user_repository.get_popular_without_notification(self.threshold)
        events = [PopularityEvent(user_id=user.id, like_count=count) for user, count in popular]

        outcomes = []
        for event in events:
            if dry_run:
                logger.info("Dry run, skipping popularity alert", user_id=event.user_id, like_count=event.like_count)
                outcomes.append(ScanOutcome(event=event, delivered=None))
                continue
            delivered = await self.sink.publish(event)
            outcomes.append(ScanOutcome(event=event, delivered=delivered))

        logger.info(
            "Popularity scan complete",
            threshold=self.threshold,
            found=len(events),
            failed=sum(1 for o in outcomes if o.delivered is False),
            dry_run=dry_run
        )

        return outcomes
