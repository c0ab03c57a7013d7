from fastapi import Depends
from fastapi.requests import HTTPConnection
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..events.broadcaster import EventBroadcaster
from ..events.producer import OrderEventPublisher
from ..services.order_service import OrderService
from ..services.product_service import ProductService
from ..services.push_service import PushService
from ..services.user_service import UserService


def get_broadcaster(connection: HTTPConnection) -> EventBroadcaster:
    """Dependency для получения broadcaster'а приложения (HTTP и WebSocket)"""
    return connection.app.state.broadcaster


def get_event_publisher(connection: HTTPConnection) -> OrderEventPublisher:
    """Dependency для получения publisher'а событий заказов"""
    return connection.app.state.event_publisher


async def get_order_service(
    db: AsyncSession = Depends(get_db),
    publisher: OrderEventPublisher = Depends(get_event_publisher)
) -> OrderService:
    """Dependency для получения OrderService"""
    return OrderService(db, publisher=publisher)


async def get_product_service(
    db: AsyncSession = Depends(get_db)
) -> ProductService:
    """Dependency для получения ProductService"""
    return ProductService(db)


async def get_user_service(
    db: AsyncSession = Depends(get_db)
) -> UserService:
    """Dependency для получения UserService"""
    return UserService(db)


async def get_push_service(
    db: AsyncSession = Depends(get_db)
) -> PushService:
    """Dependency для получения PushService"""
    return PushService(db)
