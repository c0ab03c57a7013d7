from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import InvalidCredentials, StorageErrorKind, StorageFailure, UserAlreadyExists
from ..models.user import User
from .base import StorageService
import logging

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Некорректный формат хеша в базе
        return False


class UserService(StorageService):
    """Регистрация и вход пользователей"""

    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)

    async def register(self, name: str, password: str, direccion: str) -> User:
        """Роль всегда 'user', из запроса она не берется"""

        async def _insert() -> User:
            user = User(
                name=name,
                password=hash_password(password),
                direccion=direccion,
                role=DEFAULT_ROLE
            )
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
            return user

        try:
            user = await self._write(f"registering user {name!r}", _insert)
        except StorageFailure as e:
            if e.kind == StorageErrorKind.CONSTRAINT_VIOLATION:
                raise UserAlreadyExists() from e
            raise

        logger.info(f"✅ User {user.id} registered")
        return user

    async def authenticate(self, name: str, password: str) -> User:
        async def _select() -> Optional[User]:
            result = await self.db.execute(select(User).where(User.name == name))
            return result.scalar_one_or_none()

        user = await self._read(f"looking up user {name!r}", _select)
        if user is None or not verify_password(password, user.password):
            logger.warning(f"⚠️ Failed login for {name!r}")
            raise InvalidCredentials()

        logger.info(f"✅ User {user.id} logged in")
        return user
