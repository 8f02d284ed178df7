"""Repository interface for Payment aggregate."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..entities.payment import Payment
from ..enums import PaymentStatus


class PaymentRepository(ABC):
    """Abstract repository for Payment aggregate persistence."""

    @abstractmethod
    async def add(self, payment: Payment) -> None:
        """Persist a new payment.

        Raises:
            DuplicateKeyError: If the payment reference is already taken
        """
        pass

    @abstractmethod
    async def get(self, payment_id: str) -> Payment:
        """Retrieve payment by identifier.

        Raises:
            NotFoundError: If no such payment exists
        """
        pass

    @abstractmethod
    async def get_by_reference(self, payment_reference: str) -> Payment:
        """Retrieve payment by its reference.

        Raises:
            NotFoundError: If no such payment exists
        """
        pass

    @abstractmethod
    async def find_by_external_id(self, external_id: str) -> Optional[Payment]:
        """Look up the payment a gateway notification refers to.

        Returns:
            Payment if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, payment: Payment) -> None:
        """Write the payment back with a compare-and-swap on ``version``.

        Raises:
            NotFoundError: If the payment no longer exists
            ConcurrencyError: If another writer updated the payment first
        """
        pass

    @abstractmethod
    async def list(self, limit: int = 100, offset: int = 0) -> List[Payment]:
        """List payments, newest first."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[Payment]:
        """List payments created by a user, newest first."""
        pass

    @abstractmethod
    async def list_by_order(self, order_id: str) -> List[Payment]:
        """List every payment attempt for an order, newest first."""
        pass

    async def has_successful_payment(self, order_id: str) -> bool:
        """Check whether an AUTHORIZED or CAPTURED payment exists for the order."""
        payments = await self.list_by_order(order_id)
        return any(payment.status.is_successful for payment in payments)

    async def find_superseding_payment(self, payment: Payment) -> Optional[Payment]:
        """Return another attempt on the same order that has already moved funds."""
        for other in await self.list_by_order(payment.order_id):
            if other.id != payment.id and other.status.has_moved_funds:
                return other
        return None

    async def has_other_pending_payment(self, payment: Payment) -> bool:
        """Check whether another attempt on the same order is still PENDING."""
        return any(
            other.id != payment.id and other.status == PaymentStatus.PENDING
            for other in await self.list_by_order(payment.order_id)
        )
