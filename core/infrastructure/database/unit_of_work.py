"""
Unit of Work Pattern Implementation.

Manages database transactions and repository lifecycle.
"""
from typing import Optional
import logging
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.domain.repositories import UnitOfWork
from core.infrastructure.database.repositories import (
    SQLAlchemyOrderRepository,
    SQLAlchemyPaymentRepository,
)


logger = logging.getLogger(__name__)


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    Unit of Work over one SQLAlchemy session.

    A session is opened on enter and closed on exit; anything not
    committed by then is rolled back.

    Usage:
        async with SQLAlchemyUnitOfWork(session_factory) as uow:
            payment = await uow.payments.get(payment_id)
            payment.transition_to(PaymentStatus.CAPTURED)
            await uow.payments.update(payment)
            await uow.commit()
    """

    def __init__(self, session_factory: async_sessionmaker):
        """
        Initialize Unit of Work.

        Args:
            session_factory: Factory producing AsyncSession instances
        """
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None
        self._committed = False

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Open a session and bind repositories to it."""
        self.session = self._session_factory()
        self._committed = False
        self.orders = SQLAlchemyOrderRepository(self.session)
        self.payments = SQLAlchemyPaymentRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """
        Exit async context.

        Rolls back uncommitted work and closes the session.
        """
        try:
            if exc_type is not None:
                logger.debug(f"Transaction aborted: {exc_val}")
            await self.rollback()
        finally:
            await self.session.close()
            self.session = None

    async def commit(self):
        """Commit transaction."""
        try:
            await self.session.commit()
            self._committed = True
            logger.debug("Transaction committed")
        except Exception as e:
            logger.error(f"Commit failed: {e}")
            await self.session.rollback()
            raise

    async def rollback(self):
        """Rollback transaction (no-op after commit)."""
        if self._committed or self.session is None:
            return
        await self.session.rollback()
