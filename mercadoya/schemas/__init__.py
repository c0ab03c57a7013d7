from .order import (
    OrderItemCreate,
    OrderCreate,
    OrderCreatedResponse,
    OrderStatusUpdate,
    OrderStatusResponse,
    OrderProductResponse,
    OrderResponse,
    MessageResponse,
)
from .product import ProductCreate, ProductUpdate, ProductResponse, ProductCreatedResponse
from .user import UserRegister, UserLogin, UserResponse, LoginResponse, TokenData
from .push import PushKeys, PushSubscriptionCreate, PushUnsubscribe, VapidPublicKeyResponse

__all__ = [
    "OrderItemCreate",
    "OrderCreate",
    "OrderCreatedResponse",
    "OrderStatusUpdate",
    "OrderStatusResponse",
    "OrderProductResponse",
    "OrderResponse",
    "MessageResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductCreatedResponse",
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "LoginResponse",
    "TokenData",
    "PushKeys",
    "PushSubscriptionCreate",
    "PushUnsubscribe",
    "VapidPublicKeyResponse"
]
