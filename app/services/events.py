"""
Popularity events passed from the watcher to whoever delivers alerts.

The sink is an explicit seam: the watcher publishes, a sink decides how the
event reaches the notification dispatcher.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PopularityEvent:
    """A user crossed the like threshold and has not been reported yet."""
    user_id: int
    like_count: int


class PopularityEventSink(ABC):
    """Destination for popularity events."""

    @abstractmethod
    async def publish(self, event: PopularityEvent) -> bool:
        """
        Hand the event on.

        Returns:
            True once the alert is delivered or already on record, False
            when delivery failed and a later scan has to retry
        """
        pass
