from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from ..schemas.user import TokenData
import logging

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(subject, role: str, expires_minutes: Optional[int] = None) -> str:
    """Выпускает JWT с sub = ID пользователя и его ролью"""
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    )
    claims = {"sub": str(subject), "role": role, "exp": expire}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: str) -> TokenData:
    """Проверяет подпись и срок действия, бросает jwt.InvalidTokenError"""
    claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    if "sub" not in claims or "role" not in claims:
        raise jwt.InvalidTokenError("Missing sub or role claim")
    return TokenData(subject=claims["sub"], role=claims["role"])


async def authenticate_token(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> TokenData:
    """Dependency: 401 без токена, 403 при невалидном или просроченном токене"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Acceso denegado. No se proporcionó un token.")

    try:
        return verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        logger.warning(f"⚠️ Rejected token: {e}")
        raise HTTPException(status_code=403, detail="Token inválido o expirado.")


def authorize(*roles: str) -> Callable:
    """Dependency factory: пропускает только перечисленные роли"""

    async def _check_role(user: TokenData = Depends(authenticate_token)) -> TokenData:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="No tienes permiso para realizar esta acción.")
        return user

    return _check_role
