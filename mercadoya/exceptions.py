import asyncio
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    NoResultFound,
    OperationalError,
)


class StorageErrorKind(PyEnum):
    NOT_FOUND = "not_found"
    CONSTRAINT_VIOLATION = "constraint_violation"
    CONNECTIVITY = "connectivity"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class MercadoYaError(Exception):
    """Базовая ошибка доменного слоя"""

    status_code = 500
    default_message = "Error interno del servidor."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidOrder(MercadoYaError):
    status_code = 400
    default_message = "Datos inválidos para el pedido."


class InvalidStatus(MercadoYaError):
    status_code = 400
    default_message = "Estado inválido."


class OrderNotFound(MercadoYaError):
    status_code = 404
    default_message = "Pedido no encontrado."


class ProductNotFound(MercadoYaError):
    status_code = 404
    default_message = "Producto no encontrado."


class SubscriptionNotFound(MercadoYaError):
    status_code = 404
    default_message = "Suscripción no encontrada."


class UserAlreadyExists(MercadoYaError):
    status_code = 409
    default_message = "El usuario ya existe."


class InvalidCredentials(MercadoYaError):
    status_code = 401
    default_message = "Nombre o contraseña incorrectos."


class StorageFailure(MercadoYaError):
    """Ошибка хранилища с классифицированной причиной"""

    status_code = 500

    def __init__(self, kind: StorageErrorKind = StorageErrorKind.UNKNOWN, message: Optional[str] = None):
        self.kind = kind
        super().__init__(message or f"Storage failure ({kind.value})")

    @property
    def is_transient(self) -> bool:
        return self.kind in (StorageErrorKind.CONNECTIVITY, StorageErrorKind.TIMEOUT)


def classify_storage_error(exc: BaseException) -> StorageFailure:
    """Переводит исключение SQLAlchemy в StorageFailure с нужным kind"""
    if isinstance(exc, StorageFailure):
        return exc
    if isinstance(exc, IntegrityError):
        kind = StorageErrorKind.CONSTRAINT_VIOLATION
    elif isinstance(exc, NoResultFound):
        kind = StorageErrorKind.NOT_FOUND
    elif isinstance(exc, (OperationalError, InterfaceError)):
        kind = StorageErrorKind.CONNECTIVITY
    elif isinstance(exc, DBAPIError) and exc.connection_invalidated:
        kind = StorageErrorKind.CONNECTIVITY
    elif isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        kind = StorageErrorKind.TIMEOUT
    else:
        kind = StorageErrorKind.UNKNOWN
    return StorageFailure(kind, str(exc))
