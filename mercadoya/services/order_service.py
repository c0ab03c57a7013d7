from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..events.producer import OrderEventPublisher
from ..exceptions import InvalidOrder, InvalidStatus, OrderNotFound
from ..models.order import Order, OrderStatus
from ..models.order_detail import OrderDetail
from ..models.product import Product
from ..schemas.order import OrderItemCreate, OrderResponse
from .base import StorageService
import logging

logger = logging.getLogger(__name__)


class OrderService(StorageService):
    """Сервис для работы с заказами"""

    def __init__(self, db: AsyncSession, publisher: Optional[OrderEventPublisher] = None, **kwargs):
        super().__init__(db, **kwargs)
        self.publisher = publisher

    async def place_order(
            self,
            user_id: Optional[int],
            items: Sequence[Union[OrderItemCreate, Dict[str, Any]]]
    ) -> OrderResponse:
        """
        Создает заказ и его позиции в одной транзакции.

        Позиции с quantity <= 0 или price < 0 отбрасываются. Событие new_order
        публикуется только после commit.

        Raises:
            InvalidOrder: нет user_id или не осталось ни одной валидной позиции
            StorageFailure: ошибка хранилища (заказ не сохраняется целиком)
        """
        valid_items = self._validate_items(user_id, items)

        async def _insert() -> OrderResponse:
            # Данные товаров для ответа читаем в той же транзакции
            product_ids = {item.product_id for item in valid_items}
            result = await self.db.execute(select(Product).where(Product.id.in_(product_ids)))
            products = {product.id: product for product in result.scalars().all()}

            order = Order(
                user_id=user_id,
                status=OrderStatus.PENDING,
                created_at=datetime.utcnow()
            )
            self.db.add(order)
            await self.db.flush()  # Получаем ID заказа

            details = [
                OrderDetail(
                    order_id=order.id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    price=item.price
                )
                for item in valid_items
            ]
            self.db.add_all(details)

            await self.db.commit()
            return OrderResponse.from_order(order, details=details, products=products)

        # После commit повторного чтения нет: заказ уже сохранен и событие должно уйти
        order = await self._write(f"creating order for user {user_id}", _insert)
        logger.info(f"✅ Order {order.id} created for user {user_id} with {len(valid_items)} items")

        if self.publisher:
            self.publisher.publish_new_order(order.to_event_payload())
        return order

    async def update_order_status(self, order_id: int, new_status: Union[str, OrderStatus]) -> OrderStatus:
        """Обновляет статус заказа и публикует order_status_updated"""
        try:
            status = OrderStatus.parse(new_status)
        except ValueError:
            logger.warning(f"⚠️ Rejected invalid status {new_status!r} for order {order_id}")
            raise InvalidStatus()

        async def _update() -> None:
            query = update(Order).where(Order.id == order_id).values(status=status)
            result = await self.db.execute(query)

            if result.rowcount == 0:
                logger.warning(f"⚠️ Order {order_id} not found for status update")
                raise OrderNotFound()

            await self.db.commit()

        await self._write(f"updating order {order_id} status", _update)
        logger.info(f"✅ Order {order_id} status updated to {status.value}")

        if self.publisher:
            self.publisher.publish_status_updated(order_id, status.value)
        return status

    async def get_order(self, order_id: int) -> OrderResponse:
        """Получает заказ по ID вместе с позициями"""

        async def _select() -> Optional[OrderResponse]:
            query = (
                select(Order)
                .options(selectinload(Order.details))
                .where(Order.id == order_id)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            order = result.scalar_one_or_none()
            return OrderResponse.from_order(order) if order else None

        order = await self._read(f"getting order {order_id}", _select)
        if order is None:
            raise OrderNotFound()
        return order

    async def get_orders(
            self,
            status: Optional[OrderStatus] = None,
            user_id: Optional[int] = None
    ) -> List[OrderResponse]:
        """Все заказы, новые первыми. Пустой список - нормальный результат"""

        async def _select() -> List[OrderResponse]:
            query = select(Order).options(selectinload(Order.details))

            # Применяем фильтры
            if status:
                query = query.where(Order.status == status)
            if user_id:
                query = query.where(Order.user_id == user_id)

            query = query.order_by(Order.created_at.desc(), Order.id.desc()).execution_options(populate_existing=True)
            result = await self.db.execute(query)
            return [OrderResponse.from_order(order) for order in result.scalars().all()]

        return await self._read("getting orders list", _select)

    async def delete_order(self, order_id: int) -> None:
        """Удаляет позиции и сам заказ в одной транзакции"""

        async def _delete() -> None:
            await self.db.execute(delete(OrderDetail).where(OrderDetail.order_id == order_id))
            result = await self.db.execute(delete(Order).where(Order.id == order_id))

            if result.rowcount == 0:
                logger.warning(f"⚠️ Order {order_id} not found for deletion")
                raise OrderNotFound()

            await self.db.commit()

        await self._write(f"deleting order {order_id}", _delete)
        logger.info(f"🗑️ Order {order_id} deleted")

    @staticmethod
    def _validate_items(
            user_id: Optional[int],
            items: Optional[Sequence[Union[OrderItemCreate, Dict[str, Any]]]]
    ) -> List[OrderItemCreate]:
        if not user_id:
            raise InvalidOrder()
        if not items:
            raise InvalidOrder()

        valid_items = []
        for item in items:
            if not isinstance(item, OrderItemCreate):
                try:
                    item = OrderItemCreate.model_validate(item)
                except ValidationError:
                    continue
            if item.quantity > 0 and item.price >= 0:
                valid_items.append(item)

        dropped = len(items) - len(valid_items)
        if dropped:
            logger.warning(f"⚠️ Dropped {dropped} invalid items from order of user {user_id}")

        if not valid_items:
            raise InvalidOrder()
        return valid_items
