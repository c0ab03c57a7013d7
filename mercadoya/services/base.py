import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..exceptions import StorageErrorKind, classify_storage_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageService:
    """Общая обвязка вызовов хранилища: таймаут, rollback и классификация ошибок"""

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None, read_retries: Optional[int] = None):
        self.db = db
        self.timeout = timeout if timeout is not None else settings.db_timeout_seconds
        self.read_retries = read_retries if read_retries is not None else settings.db_read_retries

    async def _write(self, action: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Запись выполняется один раз: повтор без ключа идемпотентности запрещен"""
        try:
            return await asyncio.wait_for(operation(), timeout=self.timeout)
        except (SQLAlchemyError, asyncio.TimeoutError) as e:
            await self._rollback()
            failure = classify_storage_error(e)
            logger.error(f"❌ Error {action} [{failure.kind.value}]: {e}")
            raise failure from e
        except Exception:
            await self._rollback()
            raise

    async def _read(self, action: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Чтение повторяется при потере соединения, не больше read_retries раз"""
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(operation(), timeout=self.timeout)
            except (SQLAlchemyError, asyncio.TimeoutError) as e:
                await self._rollback()
                failure = classify_storage_error(e)
                if failure.kind == StorageErrorKind.CONNECTIVITY and attempt < self.read_retries:
                    attempt += 1
                    logger.warning(f"⚠️ Connectivity error {action}, retrying ({attempt}/{self.read_retries})")
                    continue
                logger.error(f"❌ Error {action} [{failure.kind.value}]: {e}")
                raise failure from e

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError as e:
            logger.error(f"❌ Rollback failed: {e}")

