"""
SQLAlchemy Payment Repository Implementation.

Implements PaymentRepository interface using SQLAlchemy.
"""
from typing import List, Optional
import logging
from sqlalchemy import select, update, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.entities import Payment
from core.domain.enums import PaymentStatus
from core.domain.exceptions import ConcurrencyError, DuplicateKeyError, NotFoundError
from core.domain.value_objects import PaymentReference
from core.domain.repositories import PaymentRepository
from core.infrastructure.database.models import PaymentModel
from core.infrastructure.database.repositories.sqlalchemy_order_repository import as_utc


logger = logging.getLogger(__name__)


class SQLAlchemyPaymentRepository(PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository.

    Payments are never deleted. Updates are a compare-and-swap on ``version``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, payment: Payment) -> None:
        self.session.add(PaymentModel(
            id=payment.id,
            payment_reference=str(payment.payment_reference),
            version=payment.version,
            created_at=payment.created_at,
            **self._mutable_columns(payment),
        ))
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateKeyError(
                f"Payment reference {payment.payment_reference} already exists"
            ) from e
        logger.debug(f"Inserted payment {payment.payment_reference}")

    async def get(self, payment_id: str) -> Payment:
        payment_model = await self._select_one(PaymentModel.id == payment_id)
        if payment_model is None:
            raise NotFoundError("Payment", "id", payment_id)
        return self._to_domain_entity(payment_model)

    async def get_by_reference(self, payment_reference: str) -> Payment:
        payment_model = await self._select_one(PaymentModel.payment_reference == payment_reference)
        if payment_model is None:
            raise NotFoundError("Payment", "reference", payment_reference)
        return self._to_domain_entity(payment_model)

    async def find_by_external_id(self, external_id: str) -> Optional[Payment]:
        payment_model = await self._select_one(PaymentModel.external_id == external_id)
        return self._to_domain_entity(payment_model) if payment_model else None

    async def update(self, payment: Payment) -> None:
        result = await self.session.execute(
            update(PaymentModel)
            .where(and_(PaymentModel.id == payment.id, PaymentModel.version == payment.version))
            .values(version=payment.version + 1, **self._mutable_columns(payment))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            if await self._select_one(PaymentModel.id == payment.id) is None:
                raise NotFoundError("Payment", "id", payment.id)
            raise ConcurrencyError(
                f"Payment {payment.payment_reference} was modified concurrently"
            )
        payment.version += 1

    async def list(self, limit: int = 100, offset: int = 0) -> List[Payment]:
        return await self._select_many(None, limit=limit, offset=offset)

    async def list_by_user(self, user_id: str) -> List[Payment]:
        return await self._select_many(PaymentModel.user_id == user_id)

    async def list_by_order(self, order_id: str) -> List[Payment]:
        return await self._select_many(PaymentModel.order_id == order_id)

    async def has_successful_payment(self, order_id: str) -> bool:
        """Check for an AUTHORIZED or CAPTURED payment without loading every attempt."""
        result = await self.session.execute(
            select(PaymentModel.id)
            .where(
                and_(
                    PaymentModel.order_id == order_id,
                    PaymentModel.status.in_([
                        PaymentStatus.AUTHORIZED.value,
                        PaymentStatus.CAPTURED.value,
                    ]),
                )
            )
            .limit(1)
        )
        return result.first() is not None

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    async def _select_one(self, condition) -> Optional[PaymentModel]:
        result = await self.session.execute(
            select(PaymentModel).where(condition).execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def _select_many(self, condition, limit: Optional[int] = None, offset: int = 0) -> List[Payment]:
        query = select(PaymentModel)
        if condition is not None:
            query = query.where(condition)
        query = query.order_by(PaymentModel.created_at.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return [self._to_domain_entity(pm) for pm in result.scalars().all()]

    @staticmethod
    def _mutable_columns(payment: Payment) -> dict:
        return {
            "order_id": payment.order_id,
            "user_id": payment.user_id,
            "provider": payment.provider,
            "external_id": payment.external_id,
            "status": payment.status.value,
            "amount": payment.amount,
            "currency": payment.currency,
            "checkout_url": payment.checkout_url,
            "success_url": payment.success_url,
            "failure_url": payment.failure_url,
            "cancel_url": payment.cancel_url,
            "payment_metadata": dict(payment.metadata or {}),
            "error_message": payment.error_message,
            "authorized_at": payment.authorized_at,
            "captured_at": payment.captured_at,
            "refunded_at": payment.refunded_at,
            "updated_at": payment.updated_at,
        }

    def _to_domain_entity(self, payment_model: PaymentModel) -> Payment:
        """Convert database model to domain entity."""
        return Payment(
            id=payment_model.id,
            payment_reference=PaymentReference(payment_model.payment_reference),
            order_id=payment_model.order_id,
            user_id=payment_model.user_id,
            provider=payment_model.provider,
            amount=payment_model.amount,
            currency=payment_model.currency,
            status=PaymentStatus(payment_model.status),
            external_id=payment_model.external_id,
            checkout_url=payment_model.checkout_url,
            success_url=payment_model.success_url,
            failure_url=payment_model.failure_url,
            cancel_url=payment_model.cancel_url,
            metadata=dict(payment_model.payment_metadata or {}),
            error_message=payment_model.error_message,
            authorized_at=as_utc(payment_model.authorized_at),
            captured_at=as_utc(payment_model.captured_at),
            refunded_at=as_utc(payment_model.refunded_at),
            created_at=as_utc(payment_model.created_at),
            updated_at=as_utc(payment_model.updated_at),
            version=payment_model.version,
        )
