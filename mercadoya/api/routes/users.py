from fastapi import APIRouter, Depends, HTTPException

from ...exceptions import InvalidCredentials, StorageFailure, UserAlreadyExists
from ...schemas.order import MessageResponse
from ...schemas.user import LoginResponse, UserLogin, UserRegister, UserResponse
from ...services.user_service import UserService
from ..dependencies import get_user_service
from ..security import create_access_token
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(
        payload: UserRegister,
        user_service: UserService = Depends(get_user_service)
):
    """Регистрация пользователя (роль всегда 'user')"""
    if not payload.name or not payload.password or not payload.direccion:
        raise HTTPException(status_code=400, detail="Todos los campos son obligatorios.")

    try:
        await user_service.register(payload.name, payload.password, payload.direccion)
        return MessageResponse(message="Usuario registrado con éxito.")
    except UserAlreadyExists as e:
        raise HTTPException(status_code=409, detail=e.message)
    except StorageFailure:
        raise HTTPException(status_code=500, detail="Error al registrar el usuario.")


@router.post("/login", response_model=LoginResponse)
async def login(
        payload: UserLogin,
        user_service: UserService = Depends(get_user_service)
):
    """Вход: возвращает пользователя и JWT"""
    if not payload.name or not payload.password:
        raise HTTPException(status_code=400, detail="Nombre y contraseña son obligatorios.")

    try:
        user = await user_service.authenticate(payload.name, payload.password)
    except InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=e.message)
    except StorageFailure:
        raise HTTPException(status_code=500, detail="Error interno del servidor.")

    return LoginResponse(
        message="Login exitoso.",
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id, user.role)
    )
