from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy import text
import logging

from . import __version__
from .config import settings
from .database import engine, Base, AsyncSessionLocal
from .api import api_router, realtime_router
from .events.broadcaster import EventBroadcaster
from .events.producer import OrderEventPublisher
from . import models  # noqa: F401  регистрирует таблицы в Base.metadata

# Настройка логирования
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    # Startup
    logger.info("🚀 Starting MercadoYa API...")

    try:
        if settings.create_tables_on_startup:
            # Создаем таблицы
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("✅ Database tables created")

        logger.info("🎉 MercadoYa API started successfully!")

        yield  # Приложение работает

    except Exception as e:
        logger.error(f"❌ Failed to start MercadoYa API: {e}")
        raise

    # Shutdown
    logger.info("🛑 Shutting down MercadoYa API...")

    try:
        # Дожидаемся уже запланированных рассылок
        await app.state.event_publisher.drain()
        logger.info("✅ Pending broadcasts drained")

        # Закрываем соединение с БД
        await engine.dispose()
        logger.info("✅ Database connection closed")

        logger.info("👋 MercadoYa API shut down complete")

    except Exception as e:
        logger.error(f"❌ Error during shutdown: {e}")


# Создаем FastAPI приложение
app = FastAPI(
    title=settings.app_name,
    description="Backend de MercadoYa: productos, usuarios y pedidos en tiempo real",
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan
)

# Broadcaster и publisher живут в состоянии приложения и внедряются через Depends
app.state.broadcaster = EventBroadcaster()
app.state.event_publisher = OrderEventPublisher(app.state.broadcaster, session_factory=AsyncSessionLocal)

# Настройка CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

# Подключаем API routes
app.include_router(api_router)
app.include_router(realtime_router)


@app.get("/")
async def root():
    """Корневой endpoint"""
    return {
        "message": "Bienvenido al backend de MercadoYa!",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health")
async def health_check():
    """Проверка состояния сервиса"""
    try:
        db_status = "connected"
        try:
            async with AsyncSessionLocal() as db:
                await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Database check failed: {e}")
            db_status = "disconnected"

        return {
            "status": "healthy" if db_status == "connected" else "degraded",
            "service": settings.app_name,
            "database": db_status,
            "subscribers": app.state.broadcaster.connection_count,
            "version": __version__
        }
    except Exception as e:
        logger.error(f"❌ Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unhealthy")


# Обработчики исключений: любое тело ошибки имеет вид {"error": message}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    logger.warning(f"⚠️ Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": "Datos inválidos.", "details": jsonable_errors(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Глобальный обработчик исключений"""
    logger.error(f"❌ Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Error interno del servidor."}
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg")}
        for error in exc.errors()
    ]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mercadoya.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
