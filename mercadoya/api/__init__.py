from fastapi import APIRouter
from .routes import orders_router, products_router, users_router, push_router, realtime_router

# Создаем основной API router
api_router = APIRouter(prefix="/api")

# Подключаем роуты
api_router.include_router(orders_router)
api_router.include_router(products_router)
api_router.include_router(users_router)
api_router.include_router(push_router)

__all__ = ["api_router", "realtime_router"]
