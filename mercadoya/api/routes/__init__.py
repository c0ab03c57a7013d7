from .orders import router as orders_router
from .products import router as products_router
from .users import router as users_router
from .push import router as push_router
from .realtime import router as realtime_router

__all__ = [
    "orders_router",
    "products_router",
    "users_router",
    "push_router",
    "realtime_router"
]
