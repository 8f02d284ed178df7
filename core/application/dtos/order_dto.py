"""Application DTOs for Order operations."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from core.domain.entities import Order, OrderItem
from core.domain.enums import OrderStatus


class OrderItemRequest(BaseModel):
    """Line item of an order creation request."""

    name: str = Field(..., min_length=1, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    sku: str = Field(..., min_length=1, description="Product SKU")
    quantity: int = Field(..., ge=1, description="Quantity ordered")
    unit_price: Decimal = Field(..., gt=0, description="Unit price")
    tax_amount: Decimal = Field(default=Decimal("0"), ge=0, description="Line tax")
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, description="Line discount")

    model_config = {"frozen": True}

    def to_entity(self) -> OrderItem:
        return OrderItem(
            name=self.name,
            description=self.description,
            sku=self.sku,
            quantity=self.quantity,
            unit_price=self.unit_price,
            tax_amount=self.tax_amount,
            discount_amount=self.discount_amount,
        )


class CreateOrderRequest(BaseModel):
    """Request DTO for creating an order."""

    items: List[OrderItemRequest] = Field(default_factory=list, description="Order items")
    discount: Decimal = Field(default=Decimal("0"), ge=0, description="Order discount")
    tax: Decimal = Field(default=Decimal("0"), ge=0, description="Order tax")
    shipping: Decimal = Field(default=Decimal("0"), ge=0, description="Shipping charge")
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="Currency code")
    discount_code: Optional[str] = None
    notes: Optional[str] = None
    shipping_address: Optional[str] = None
    billing_address: Optional[str] = None

    model_config = {"frozen": True}


class UpdateOrderRequest(BaseModel):
    """Descriptive fields that may change after creation."""

    discount_code: Optional[str] = None
    notes: Optional[str] = None
    shipping_address: Optional[str] = None
    billing_address: Optional[str] = None

    model_config = {"frozen": True}


class OrderItemDTO(BaseModel):
    """DTO for order item."""

    id: str
    name: str
    description: Optional[str] = None
    sku: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    tax_amount: Decimal
    discount_amount: Decimal

    model_config = {"frozen": True}


class OrderDTO(BaseModel):
    """Response DTO for order details."""

    id: str = Field(..., description="Order identifier")
    order_number: str = Field(..., description="Human-readable order number")
    user_id: str
    status: OrderStatus
    items: List[OrderItemDTO] = Field(default_factory=list)
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    currency: str
    discount_code: Optional[str] = None
    notes: Optional[str] = None
    shipping_address: Optional[str] = None
    billing_address: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_entity(cls, order: Order) -> "OrderDTO":
        return cls(
            id=order.id,
            order_number=str(order.order_number),
            user_id=order.user_id,
            status=order.status,
            items=[
                OrderItemDTO(
                    id=item.id,
                    name=item.name,
                    description=item.description,
                    sku=item.sku,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total=item.total,
                    tax_amount=item.tax_amount,
                    discount_amount=item.discount_amount,
                )
                for item in order.items
            ],
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
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListDTO(BaseModel):
    """DTO for listing orders."""

    orders: List[OrderDTO] = Field(default_factory=list, description="List of orders")
    total: int = Field(..., ge=0, description="Count of orders returned")
    limit: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)

    model_config = {"frozen": True}
