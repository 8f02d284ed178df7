"""
Event Bus Interface (Domain Layer).

Pure interface definition - no implementation details.
"""
from abc import ABC, abstractmethod
from typing import Callable, List

from .events.base import DomainEvent


class EventBus(ABC):
    """
    Event Bus Interface.

    Application services publish the events collected by aggregates once
    the unit of work that produced them has committed.
    """

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """
        Publish a single domain event.

        Args:
            event: Domain event to publish
        """

    async def publish_all(self, events: List[DomainEvent]) -> None:
        """
        Publish events in order.

        Args:
            events: List of domain events to publish
        """
        for event in events:
            await self.publish(event)

    @abstractmethod
    def subscribe(self, handler: Callable[[DomainEvent], None]) -> None:
        """Register a handler (sync or async) for every event."""
