"""
Event Bus Implementation (Infrastructure Layer).

Delivers committed domain events to in-process subscribers.
"""
from collections import deque
from typing import Callable, Deque, List, Optional
import asyncio

from core.domain.event_bus import EventBus
from core.domain.events.base import DomainEvent
from core.infrastructure.logging import get_logger


logger = get_logger("orderpay.event_bus")


class InMemoryEventBus(EventBus):
    """
    In-Memory Event Bus Implementation.

    Features:
    - Notifies registered subscribers in registration order
    - Supports sync and async handlers
    - Keeps the most recent events for inspection

    A failing subscriber is logged and skipped; the state change that
    produced the event has already been committed.
    """

    def __init__(self, history_size: int = 1000):
        """Initialize event bus with subscribers."""
        self._subscribers: List[Callable[[DomainEvent], None]] = []
        self._history: Deque[DomainEvent] = deque(maxlen=history_size)

    async def publish(self, event: DomainEvent) -> None:
        """
        Publish a single domain event.

        Args:
            event: Domain event to publish
        """
        logger.debug(f"Publishing event: {event.event_type} (aggregate: {event.aggregate_id})")
        self._history.append(event)
        await self._notify_subscribers(event)

    def subscribe(self, handler: Callable[[DomainEvent], None]) -> None:
        """
        Subscribe to all domain events.

        Args:
            handler: Callback function that receives events
        """
        if handler not in self._subscribers:
            self._subscribers.append(handler)
            logger.info(f"Registered event subscriber: {getattr(handler, '__name__', handler)}")

    def unsubscribe(self, handler: Callable[[DomainEvent], None]) -> None:
        """
        Unsubscribe from domain events.

        Args:
            handler: Callback function to remove
        """
        if handler in self._subscribers:
            self._subscribers.remove(handler)
            logger.info(f"Unregistered event subscriber: {getattr(handler, '__name__', handler)}")

    def recent_events(self, event_type: Optional[str] = None) -> List[DomainEvent]:
        """Events published so far, oldest first, optionally filtered by type."""
        return [e for e in self._history if event_type is None or e.event_type == event_type]

    def clear(self) -> None:
        self._history.clear()

    async def _notify_subscribers(self, event: DomainEvent) -> None:
        """Notify all subscribers about an event."""
        for subscriber in list(self._subscribers):
            try:
                if asyncio.iscoroutinefunction(subscriber):
                    await subscriber(event)
                else:
                    subscriber(event)
            except Exception as e:
                logger.error(
                    f"Subscriber {getattr(subscriber, '__name__', subscriber)} failed: {e}",
                    exc_info=True,
                )
