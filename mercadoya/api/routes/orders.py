from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from ...exceptions import InvalidOrder, InvalidStatus, OrderNotFound, StorageFailure
from ...models.order import OrderStatus
from ...schemas.order import (
    MessageResponse,
    OrderCreate,
    OrderCreatedResponse,
    OrderResponse,
    OrderStatusResponse,
    OrderStatusUpdate,
)
from ...services.order_service import OrderService
from ..dependencies import get_order_service
from ..security import authorize
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderCreatedResponse, status_code=201)
async def create_order(
        payload: OrderCreate,
        order_service: OrderService = Depends(get_order_service)
):
    """Зарегистрировать заказ"""
    try:
        order = await order_service.place_order(payload.user_id, payload.products)
        return OrderCreatedResponse(message="Pedido registrado con éxito.", order_id=order.id)
    except InvalidOrder as e:
        raise HTTPException(status_code=400, detail=e.message)
    except StorageFailure as e:
        logger.error(f"❌ Error creating order: {e} [{e.kind.value}]")
        raise HTTPException(status_code=500, detail="Error al registrar el pedido.")


@router.get("", response_model=List[OrderResponse])
async def get_orders(
        status: Optional[OrderStatus] = Query(None, description="Фильтр по статусу"),
        user_id: Optional[int] = Query(None, alias="userId", description="Фильтр по пользователю"),
        order_service: OrderService = Depends(get_order_service)
):
    """Получить все заказы с позициями, новые первыми. Пустой список - 200 []"""
    try:
        return await order_service.get_orders(status=status, user_id=user_id)
    except StorageFailure as e:
        logger.error(f"❌ Error getting orders: {e} [{e.kind.value}]")
        raise HTTPException(status_code=500, detail="Error al obtener los pedidos.")


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
        order_id: int,
        order_service: OrderService = Depends(get_order_service)
):
    """Получить заказ по ID"""
    try:
        return await order_service.get_order(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StorageFailure as e:
        logger.error(f"❌ Error getting order {order_id}: {e} [{e.kind.value}]")
        raise HTTPException(status_code=500, detail="Error al obtener el pedido.")


@router.put(
    "/{order_id}/status",
    response_model=OrderStatusResponse,
    dependencies=[Depends(authorize("admin"))]
)
async def update_order_status(
        order_id: int,
        payload: OrderStatusUpdate,
        order_service: OrderService = Depends(get_order_service)
):
    """Обновить статус заказа"""
    try:
        status = await order_service.update_order_status(order_id, payload.status)
        return OrderStatusResponse(message="Estado actualizado con éxito.", status=status)
    except (InvalidStatus, OrderNotFound) as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except StorageFailure as e:
        logger.error(f"❌ Error updating order {order_id} status: {e} [{e.kind.value}]")
        raise HTTPException(status_code=500, detail="Error al actualizar el estado del pedido.")


@router.delete(
    "/{order_id}",
    response_model=MessageResponse,
    dependencies=[Depends(authorize("admin"))]
)
async def delete_order(
        order_id: int,
        order_service: OrderService = Depends(get_order_service)
):
    """Удалить заказ вместе с позициями"""
    try:
        await order_service.delete_order(order_id)
        return MessageResponse(message="Pedido eliminado con éxito.")
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StorageFailure as e:
        logger.error(f"❌ Error deleting order {order_id}: {e} [{e.kind.value}]")
        raise HTTPException(status_code=500, detail="Error al eliminar el pedido.")
