import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from pywebpush import WebPushException, webpush
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..exceptions import SubscriptionNotFound
from ..models.push_subscription import PushSubscription
from ..schemas.push import PushSubscriptionCreate
from .base import StorageService

logger = logging.getLogger(__name__)

# Ответы push-сервиса, после которых подписка больше не действительна
STALE_SUBSCRIPTION_CODES = {404, 410}


class PushService(StorageService):
    """Хранение web push подписок и отправка уведомлений"""

    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.vapid_private_key)

    async def save_subscription(self, data: PushSubscriptionCreate) -> PushSubscription:
        """Upsert по endpoint: повторная подписка обновляет ключи"""

        async def _upsert() -> PushSubscription:
            result = await self.db.execute(
                select(PushSubscription).where(PushSubscription.endpoint == data.endpoint)
            )
            subscription = result.scalar_one_or_none()

            if subscription is None:
                subscription = PushSubscription(endpoint=data.endpoint)
                self.db.add(subscription)

            subscription.p256dh = data.keys.p256dh
            subscription.auth = data.keys.auth

            await self.db.commit()
            await self.db.refresh(subscription)
            return subscription

        subscription = await self._write("saving push subscription", _upsert)
        logger.info(f"✅ Push subscription {subscription.id} saved")
        return subscription

    async def remove_subscription(self, endpoint: str) -> None:
        async def _delete() -> None:
            result = await self.db.execute(
                delete(PushSubscription).where(PushSubscription.endpoint == endpoint)
            )
            if result.rowcount == 0:
                raise SubscriptionNotFound()
            await self.db.commit()

        await self._write("removing push subscription", _delete)
        logger.info("🗑️ Push subscription removed")

    async def list_subscriptions(self) -> List[PushSubscription]:
        async def _select() -> List[PushSubscription]:
            result = await self.db.execute(select(PushSubscription).order_by(PushSubscription.id))
            return list(result.scalars().all())

        return await self._read("getting push subscriptions", _select)

    async def send_to_all(self, payload: Dict[str, Any]) -> int:
        """
        Отправляет уведомление всем подписчикам.

        Подписки, на которые push-сервис ответил 404/410, удаляются.
        Остальные ошибки только логируются.

        Returns:
            int: количество успешных отправок
        """
        subscriptions = await self.list_subscriptions()
        data = json.dumps(payload)
        sent = 0
        stale: List[str] = []

        for subscription in subscriptions:
            status_code = await self._send(subscription, data)
            if status_code is None:
                sent += 1
            elif status_code in STALE_SUBSCRIPTION_CODES:
                stale.append(subscription.endpoint)

        for endpoint in stale:
            try:
                await self.remove_subscription(endpoint)
                logger.info(f"🧹 Removed stale push subscription {endpoint}")
            except SubscriptionNotFound:
                pass

        return sent

    async def _send(self, subscription: PushSubscription, data: str) -> Optional[int]:
        """None при успехе, иначе HTTP код ответа push-сервиса (0 если его нет)"""
        try:
            # pywebpush синхронный, уводим его из event loop
            await asyncio.to_thread(
                webpush,
                subscription_info=subscription.to_subscription_info(),
                data=data,
                vapid_private_key=settings.vapid_private_key,
                vapid_claims={"sub": settings.vapid_subject},
            )
            return None
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else 0
            logger.warning(f"⚠️ Push to subscription {subscription.id} failed ({status_code}): {e}")
            return status_code
        except Exception as e:
            logger.error(f"❌ Error sending push to subscription {subscription.id}: {e}")
            return 0
