from fastapi import APIRouter, Depends, HTTPException

from ...config import settings
from ...exceptions import StorageFailure, SubscriptionNotFound
from ...schemas.order import MessageResponse
from ...schemas.push import PushSubscriptionCreate, PushUnsubscribe, VapidPublicKeyResponse
from ...services.push_service import PushService
from ..dependencies import get_push_service

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/public-key", response_model=VapidPublicKeyResponse)
async def get_public_key():
    """VAPID public key для подписки в браузере"""
    if not settings.vapid_public_key:
        raise HTTPException(status_code=404, detail="Notificaciones push no configuradas.")
    return VapidPublicKeyResponse(public_key=settings.vapid_public_key)


@router.post("/subscribe", response_model=MessageResponse, status_code=201)
async def subscribe(
        payload: PushSubscriptionCreate,
        push_service: PushService = Depends(get_push_service)
):
    """Сохранить push подписку"""
    try:
        await push_service.save_subscription(payload)
        return MessageResponse(message="Suscripción guardada.")
    except StorageFailure:
        raise HTTPException(status_code=500, detail="Error al guardar la suscripción.")


@router.post("/unsubscribe", response_model=MessageResponse)
async def unsubscribe(
        payload: PushUnsubscribe,
        push_service: PushService = Depends(get_push_service)
):
    """Удалить push подписку"""
    try:
        await push_service.remove_subscription(payload.endpoint)
        return MessageResponse(message="Suscripción eliminada.")
    except SubscriptionNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StorageFailure:
        raise HTTPException(status_code=500, detail="Error al eliminar la suscripción.")
