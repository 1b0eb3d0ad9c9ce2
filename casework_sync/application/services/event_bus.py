"""In-process event channel fanning domain events out to subscribers."""
import asyncio
import logging
from typing import List

from casework_sync.domain.events import DomainEvent
from casework_sync.domain.ports.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class EventBus(EventPublisher):
    """
    Message-passing event channel.

    Each subscriber owns an asyncio.Queue and receives every event emitted
    after it subscribed, in emission order. A full queue drops the event
    for that subscriber only.
    """

    def __init__(self):
        self._subscribers: List[asyncio.Queue] = []

    def subscribe(self, maxsize: int = 0) -> asyncio.Queue:
        """
        Register a new subscriber.

        Args:
            maxsize: Queue bound, 0 for unbounded

        Returns:
            Queue the subscriber reads events from
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    async def emit(self, event: DomainEvent) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(
                    f"Dropping {event.event_type} event for a full subscriber queue "
                    f"(office {event.office_id})"
                )
