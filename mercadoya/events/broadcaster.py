import asyncio
import logging
from enum import Enum as PyEnum
from typing import Any, Dict, Optional, Protocol, Set

from ..config import settings

logger = logging.getLogger(__name__)


class OrderEvent(str, PyEnum):
    NEW_ORDER = "new_order"
    STATUS_CHANGED = "order_status_updated"


class Subscriber(Protocol):
    """Все, что умеет отправить JSON: WebSocket или тестовый двойник"""

    async def send_json(self, data: Any) -> None:
        ...

    async def close(self, code: int = 1000) -> None:
        ...


class EventBroadcaster:
    """
    Рассылка событий заказов всем подключенным real-time клиентам.

    Best-effort: без подтверждений, повторов и хранения пропущенных событий.
    Набор подключений защищен asyncio.Lock, отправка идет по снимку набора.
    """

    def __init__(self, send_timeout: Optional[float] = None):
        self._connections: Dict[int, Subscriber] = {}
        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()
        self.send_timeout = send_timeout if send_timeout is not None else settings.broadcast_send_timeout

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, subscriber: Subscriber) -> None:
        """Регистрирует подписчика (соединение уже должно быть принято)"""
        async with self._lock:
            self._connections[id(subscriber)] = subscriber
            total = len(self._connections)
        logger.info(f"🔌 Subscriber connected ({total} active)")

    async def disconnect(self, subscriber: Subscriber) -> None:
        async with self._lock:
            if self._connections.pop(id(subscriber), None) is None:
                return
            total = len(self._connections)
        logger.info(f"🔌 Subscriber disconnected ({total} active)")

    def broadcast(self, event: OrderEvent, payload: Dict[str, Any]) -> asyncio.Task:
        """
        Планирует отправку события всем подписчикам и сразу возвращает управление.

        Args:
            event: Тип события
            payload: Данные события (JSON-сериализуемые)

        Returns:
            asyncio.Task: задача рассылки, результат - число успешных доставок
        """
        task = asyncio.create_task(self._fan_out(OrderEvent(event), payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Ждет завершения всех запланированных рассылок"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _fan_out(self, event: OrderEvent, payload: Dict[str, Any]) -> int:
        message = {"event": event.value, "data": payload}

        async with self._lock:
            targets = list(self._connections.values())

        if not targets:
            logger.debug(f"No subscribers for {event.value}")
            return 0

        results = await asyncio.gather(*(self._send(subscriber, message) for subscriber in targets))
        delivered = sum(1 for ok in results if ok)
        logger.info(f"📤 Broadcast {event.value} to {delivered}/{len(targets)} subscribers")
        return delivered

    async def _send(self, subscriber: Subscriber, message: Dict[str, Any]) -> bool:
        try:
            await asyncio.wait_for(subscriber.send_json(message), timeout=self.send_timeout)
            return True
        except Exception as e:
            # Отвалившийся клиент не должен мешать остальным
            logger.warning(f"⚠️ Failed to deliver {message['event']} to subscriber, dropping it: {e!r}")
            await self.disconnect(subscriber)
            await self._close(subscriber)
            return False

    async def _close(self, subscriber: Subscriber) -> None:
        """Закрываем соединение, чтобы клиент узнал об отключении и переподключился"""
        try:
            await asyncio.wait_for(subscriber.close(code=1011), timeout=self.send_timeout)
        except Exception as e:
            logger.warning(f"⚠️ Failed to close dropped subscriber: {e!r}")
