from .order_service import OrderService
from .product_service import ProductService
from .user_service import UserService
from .push_service import PushService

__all__ = [
    "OrderService",
    "ProductService",
    "UserService",
    "PushService"
]
