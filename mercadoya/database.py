from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from .config import settings


def _engine_options(url: str) -> dict:
    """Параметры движка в зависимости от драйвера"""
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        # In-memory база живет только пока жив один коннект
        if ":memory:" in url or url.rstrip("/").endswith(":"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite не проверяет внешние ключи без PRAGMA на каждом соединении"""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, **overrides) -> AsyncEngine:
    options = _engine_options(url)
    options.update(overrides)
    new_engine = create_async_engine(url, echo=settings.debug, **options)
    if url.startswith("sqlite"):
        enable_sqlite_foreign_keys(new_engine)
    return new_engine


# Создаем асинхронный движок
engine = build_engine(settings.database_url)

# Создаем сессию
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Базовый класс для моделей
Base = declarative_base()


async def get_db():
    """Dependency для получения сессии базы данных"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
