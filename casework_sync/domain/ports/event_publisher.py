"""Event publisher port interface."""
from abc import ABC, abstractmethod

from casework_sync.domain.events import DomainEvent


class EventPublisher(ABC):
    """Sink for domain events emitted during a sync run."""

    @abstractmethod
    async def emit(self, event: DomainEvent) -> None:
        """
        Publish an event. Must not raise because of a slow or failing consumer.

        Args:
            event: Event to publish
        """
        pass
