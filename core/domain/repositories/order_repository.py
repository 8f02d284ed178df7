"""Repository interface for Order aggregate."""

from abc import ABC, abstractmethod
from typing import List

from ..entities.order import Order


class OrderRepository(ABC):
    """Abstract repository for Order aggregate persistence."""

    @abstractmethod
    async def add(self, order: Order) -> None:
        """Persist a new order with its items.

        Args:
            order: Order aggregate to persist

        Raises:
            DuplicateKeyError: If the order number is already taken
        """
        pass

    @abstractmethod
    async def get(self, order_id: str) -> Order:
        """Retrieve a fully materialized order (items included).

        Args:
            order_id: Order identifier

        Raises:
            NotFoundError: If no such order exists
        """
        pass

    @abstractmethod
    async def get_by_number(self, order_number: str) -> Order:
        """Retrieve order by its human-readable number.

        Raises:
            NotFoundError: If no such order exists
        """
        pass

    @abstractmethod
    async def update(self, order: Order) -> None:
        """Write status and descriptive fields back.

        ``order.version`` must match the stored version; it is incremented
        on success.

        Raises:
            NotFoundError: If the order no longer exists
            ConcurrencyError: If another writer updated the order first
        """
        pass

    @abstractmethod
    async def delete(self, order_id: str) -> None:
        """Delete order.

        Raises:
            NotFoundError: If no such order exists
        """
        pass

    @abstractmethod
    async def list(self, limit: int = 100, offset: int = 0) -> List[Order]:
        """List orders, newest first."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str, limit: int = 100, offset: int = 0) -> List[Order]:
        """List orders owned by a user, newest first."""
        pass
