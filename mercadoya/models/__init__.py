from .user import User
from .product import Product
from .order import Order, OrderStatus
from .order_detail import OrderDetail
from .push_subscription import PushSubscription

__all__ = [
    "User",
    "Product",
    "Order",
    "OrderStatus",
    "OrderDetail",
    "PushSubscription"
]
