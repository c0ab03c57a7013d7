import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Set

from .broadcaster import EventBroadcaster, OrderEvent

logger = logging.getLogger(__name__)


class OrderEventPublisher:
    """Публикация событий жизненного цикла заказа (real-time + web push)"""

    def __init__(
            self,
            broadcaster: EventBroadcaster,
            session_factory: Optional[Callable] = None,
            push_enabled: Optional[bool] = None
    ):
        self.broadcaster = broadcaster
        self.session_factory = session_factory
        self._push_enabled = push_enabled
        self._push_tasks: Set[asyncio.Task] = set()

    @property
    def push_enabled(self) -> bool:
        if self._push_enabled is not None:
            return self._push_enabled
        from ..services.push_service import PushService
        return self.session_factory is not None and PushService.is_configured()

    def publish_new_order(self, order_payload: Dict[str, Any]) -> None:
        """Событие создания заказа: полный материализованный заказ"""
        self.broadcaster.broadcast(OrderEvent.NEW_ORDER, order_payload)

        if self.push_enabled:
            task = asyncio.create_task(self._notify_push_subscribers(order_payload))
            self._push_tasks.add(task)
            task.add_done_callback(self._push_tasks.discard)
        else:
            logger.debug("Web push disabled, skipping push notifications")

    def publish_status_updated(self, order_id: int, status: str) -> None:
        """Событие смены статуса заказа"""
        self.broadcaster.broadcast(OrderEvent.STATUS_CHANGED, {"id": order_id, "status": status})

    async def drain(self) -> None:
        """Ждет завершения рассылок (используется при остановке и в тестах)"""
        await self.broadcaster.drain()
        while self._push_tasks:
            await asyncio.gather(*list(self._push_tasks), return_exceptions=True)

    async def _notify_push_subscribers(self, order_payload: Dict[str, Any]) -> None:
        # Импортируем только когда нужно, чтобы избежать circular import
        from ..services.push_service import PushService

        try:
            notification = {
                "title": "Nuevo pedido",
                "body": f"Se registró el pedido #{order_payload.get('id')}",
                "data": {"orderId": order_payload.get("id")},
            }
            async with self.session_factory() as db:
                sent = await PushService(db).send_to_all(notification)
            logger.info(f"📤 Push notification for order {order_payload.get('id')} sent to {sent} subscriptions")
        except Exception as e:
            logger.error(f"❌ Failed to send push notifications for order {order_payload.get('id')}: {e}")
