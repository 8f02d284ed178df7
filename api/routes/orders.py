"""
Orders management endpoints.

Orders are created and read here; their status only changes through the
payment endpoints.
"""
from fastapi import APIRouter, Depends, Query, Response, status
import logging

from api.dependencies import get_current_user_id, get_order_service
from core.application.dtos import CreateOrderRequest, OrderDTO, OrderListDTO, UpdateOrderRequest
from core.application.services import OrderApplicationService


logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=OrderDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Create an order with its items; totals are computed server-side",
)
async def create_order(
    request: CreateOrderRequest,
    user_id: str = Depends(get_current_user_id),
    service: OrderApplicationService = Depends(get_order_service),
):
    return await service.create_order(user_id, request)


@router.get(
    "",
    response_model=OrderListDTO,
    summary="List all orders",
)
async def list_orders(
    limit: int = Query(default=100, ge=1, le=1000, description="Maximum number of orders to return"),
    offset: int = Query(default=0, ge=0, description="Number of orders to skip"),
    service: OrderApplicationService = Depends(get_order_service),
):
    return await service.list_orders(limit=limit, offset=offset)


@router.get(
    "/mine",
    response_model=OrderListDTO,
    summary="List my orders",
)
async def list_my_orders(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(get_current_user_id),
    service: OrderApplicationService = Depends(get_order_service),
):
    return await service.list_user_orders(user_id, limit=limit, offset=offset)


@router.get(
    "/number/{order_number}",
    response_model=OrderDTO,
    summary="Get order by order number",
)
async def get_order_by_number(
    order_number: str,
    service: OrderApplicationService = Depends(get_order_service),
):
    return await service.get_order_by_number(order_number)


@router.get(
    "/{order_id}",
    response_model=OrderDTO,
    summary="Get order by ID",
)
async def get_order(
    order_id: str,
    service: OrderApplicationService = Depends(get_order_service),
):
    return await service.get_order(order_id)


@router.put(
    "/{order_id}",
    response_model=OrderDTO,
    summary="Update order details",
    description="Update notes, addresses or discount code; totals and status are not editable",
)
async def update_order(
    order_id: str,
    request: UpdateOrderRequest,
    user_id: str = Depends(get_current_user_id),
    service: OrderApplicationService = Depends(get_order_service),
):
    return await service.update_order(order_id, request, user_id=user_id)


@router.delete(
    "/{order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete order",
    description="Refused with 409 while an authorized or captured payment references the order",
)
async def delete_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    service: OrderApplicationService = Depends(get_order_service),
):
    await service.delete_order(order_id, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
