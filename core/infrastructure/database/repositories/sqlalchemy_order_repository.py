"""
SQLAlchemy Order Repository Implementation.

Implements OrderRepository interface using SQLAlchemy (PostgreSQL or SQLite).
"""
from typing import List
from datetime import datetime, timezone
import logging
from sqlalchemy import select, update, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.entities import Order, OrderItem
from core.domain.enums import OrderStatus
from core.domain.exceptions import ConcurrencyError, DuplicateKeyError, NotFoundError
from core.domain.value_objects import OrderNumber
from core.domain.repositories import OrderRepository
from core.infrastructure.database.models import OrderModel, OrderItemModel


logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; restore UTC on the way out."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SQLAlchemyOrderRepository(OrderRepository):
    """
    SQLAlchemy implementation of OrderRepository.

    Deletes are soft; updates are a compare-and-swap on ``version``.
    Commit is handled by the Unit of Work.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def add(self, order: Order) -> None:
        """Insert a new order with its items."""
        order_model = OrderModel(
            id=order.id,
            order_number=str(order.order_number),
            user_id=order.user_id,
            status=order.status.value,
            subtotal=order.subtotal,
            discount=order.discount,
            tax=order.tax,
            shipping=order.shipping,
            total=order.total,
            currency=order.currency,
            discount_code=order.discount_code,
            notes=order.notes,
            shipping_address=order.shipping_address,
            billing_address=order.billing_address,
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        for position, item in enumerate(order.items):
            order_model.items.append(OrderItemModel(
                id=item.id,
                position=position,
                name=item.name,
                description=item.description,
                sku=item.sku,
                quantity=item.quantity,
                unit_price=item.unit_price,
                tax_amount=item.tax_amount,
                discount_amount=item.discount_amount,
                total=item.total,
            ))

        self.session.add(order_model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateKeyError(f"Order number {order.order_number} already exists") from e
        logger.debug(f"Inserted order {order.order_number}")

    async def get(self, order_id: str) -> Order:
        order_model = await self._select_one(OrderModel.id == order_id)
        if order_model is None:
            raise NotFoundError("Order", "id", order_id)
        return self._to_domain_entity(order_model)

    async def get_by_number(self, order_number: str) -> Order:
        order_model = await self._select_one(OrderModel.order_number == order_number)
        if order_model is None:
            raise NotFoundError("Order", "number", order_number)
        return self._to_domain_entity(order_model)

    async def update(self, order: Order) -> None:
        """Write status and descriptive fields if nobody else did first."""
        result = await self.session.execute(
            update(OrderModel)
            .where(
                and_(
                    OrderModel.id == order.id,
                    OrderModel.version == order.version,
                    OrderModel.is_deleted == False  # noqa: E712
                )
            )
            .values(
                status=order.status.value,
                discount_code=order.discount_code,
                notes=order.notes,
                shipping_address=order.shipping_address,
                billing_address=order.billing_address,
                updated_at=order.updated_at,
                version=order.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            if await self._select_one(OrderModel.id == order.id) is None:
                raise NotFoundError("Order", "id", order.id)
            raise ConcurrencyError(f"Order {order.order_number} was modified concurrently")
        order.version += 1

    async def delete(self, order_id: str) -> None:
        """Soft delete order."""
        result = await self.session.execute(
            update(OrderModel)
            .where(and_(OrderModel.id == order_id, OrderModel.is_deleted == False))  # noqa: E712
            .values(is_deleted=True, deleted_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Order", "id", order_id)
        logger.info(f"Soft-deleted order {order_id}")

    async def list(self, limit: int = 100, offset: int = 0) -> List[Order]:
        return await self._select_many(None, limit, offset)

    async def list_by_user(self, user_id: str, limit: int = 100, offset: int = 0) -> List[Order]:
        return await self._select_many(OrderModel.user_id == user_id, limit, offset)

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    async def _select_one(self, condition):
        result = await self.session.execute(
            select(OrderModel)
            .where(and_(condition, OrderModel.is_deleted == False))  # noqa: E712
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _select_many(self, condition, limit: int, offset: int) -> List[Order]:
        query = select(OrderModel).where(OrderModel.is_deleted == False)  # noqa: E712
        if condition is not None:
            query = query.where(condition)
        result = await self.session.execute(
            query.order_by(OrderModel.created_at.desc()).limit(limit).offset(offset)
        )
        return [self._to_domain_entity(om) for om in result.scalars().all()]

    def _to_domain_entity(self, order_model: OrderModel) -> Order:
        """Convert database model to domain entity."""
        items = [
            OrderItem(
                id=item.id,
                name=item.name,
                description=item.description,
                sku=item.sku,
                quantity=item.quantity,
                unit_price=item.unit_price,
                tax_amount=item.tax_amount,
                discount_amount=item.discount_amount,
                total=item.total,
            )
            for item in order_model.items
        ]
        return Order(
            id=order_model.id,
            order_number=OrderNumber(order_model.order_number),
            user_id=order_model.user_id,
            items=items,
            status=OrderStatus(order_model.status),
            subtotal=order_model.subtotal,
            discount=order_model.discount,
            tax=order_model.tax,
            shipping=order_model.shipping,
            total=order_model.total,
            currency=order_model.currency,
            discount_code=order_model.discount_code,
            notes=order_model.notes,
            shipping_address=order_model.shipping_address,
            billing_address=order_model.billing_address,
            created_at=as_utc(order_model.created_at),
            updated_at=as_utc(order_model.updated_at),
            version=order_model.version,
        )
