"""
SQLAlchemy ORM Models.

Maps domain entities to database tables.
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, DateTime, Integer, Numeric,
    Text, Boolean, Index, ForeignKey, JSON
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ORDER MODEL
# =============================================================================

class OrderModel(Base):
    """
    Order database model.

    Totals are stored as computed at creation; ``version`` backs the
    optimistic compare-and-swap in the repository.
    """

    __tablename__ = "orders"

    # Primary key
    id = Column(String(36), primary_key=True)

    # Order identifiers
    order_number = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)

    # Order status
    status = Column(String(32), nullable=False, default="pending", index=True)

    # Totals
    subtotal = Column(Numeric(15, 2), nullable=False)
    discount = Column(Numeric(15, 2), nullable=False, default=0)
    tax = Column(Numeric(15, 2), nullable=False, default=0)
    shipping = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False)

    # Descriptive fields
    discount_code = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    shipping_address = Column(Text, nullable=True)
    billing_address = Column(Text, nullable=True)

    # Concurrency
    version = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Soft delete
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)

    # Relationships
    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItemModel.position",
    )

    # Indexes
    __table_args__ = (
        Index('ix_orders_user_created', 'user_id', 'created_at'),
        Index('ix_orders_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<OrderModel(id={self.id}, order_number={self.order_number}, status={self.status})>"


# =============================================================================
# ORDER ITEM MODEL
# =============================================================================

class OrderItemModel(Base):
    """
    Order item database model.

    Items are written once with their order and never updated.
    """

    __tablename__ = "order_items"

    # Primary key
    id = Column(String(36), primary_key=True)

    # Foreign key
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    # Item details
    name = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(String(255), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)

    # Item financials
    unit_price = Column(Numeric(15, 2), nullable=False)
    tax_amount = Column(Numeric(15, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False)

    # Relationships
    order = relationship("OrderModel", back_populates="items")

    def __repr__(self):
        return f"<OrderItemModel(id={self.id}, sku={self.sku}, quantity={self.quantity})>"


# =============================================================================
# PAYMENT MODEL
# =============================================================================

class PaymentModel(Base):
    """
    Payment database model.

    Payments are never deleted; failures stay as status + error_message.
    """

    __tablename__ = "payments"

    # Primary key
    id = Column(String(36), primary_key=True)

    # Identifiers
    payment_reference = Column(String(64), unique=True, nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    provider = Column(String(50), nullable=False)
    external_id = Column(String(255), nullable=True, index=True)

    # Status and amount
    status = Column(String(32), nullable=False, default="pending", index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False)

    # Checkout
    checkout_url = Column(Text, nullable=True)
    success_url = Column(Text, nullable=True)
    failure_url = Column(Text, nullable=True)
    cancel_url = Column(Text, nullable=True)
    payment_metadata = Column("metadata", JSON, nullable=True)
    error_message = Column(Text, nullable=True)

    # Lifecycle timestamps
    authorized_at = Column(DateTime(timezone=True), nullable=True)
    captured_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    # Concurrency
    version = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Indexes
    __table_args__ = (
        Index('ix_payments_order_status', 'order_id', 'status'),
        Index('ix_payments_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<PaymentModel(id={self.id}, reference={self.payment_reference}, status={self.status})>"
