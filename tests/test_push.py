"""Tests for web push subscriptions and delivery."""

import pytest
from pywebpush import WebPushException

from mercadoya.config import settings
from mercadoya.events.producer import OrderEventPublisher
from mercadoya.models import PushSubscription
from mercadoya.schemas.push import PushSubscriptionCreate
from mercadoya.services.push_service import PushService


def subscription(endpoint, p256dh="key", auth="auth"):
    return PushSubscriptionCreate(endpoint=endpoint, keys={"p256dh": p256dh, "auth": auth})


def push_error(status_code, mocker):
    response = mocker.MagicMock(status_code=status_code)
    return WebPushException(f"Push failed: {status_code}", response=response)


@pytest.fixture
def webpush(mocker):
    """Patch the pywebpush call so nothing leaves the process."""
    return mocker.patch("mercadoya.services.push_service.webpush")


async def test_save_subscription_upserts_by_endpoint(session_factory, seed, count_rows):
    async with session_factory() as db:
        service = PushService(db)
        first = await service.save_subscription(subscription("https://push.example/a", p256dh="old"))
        second = await service.save_subscription(subscription("https://push.example/a", p256dh="new"))

    assert first.id == second.id
    assert second.p256dh == "new"
    assert count_rows(PushSubscription) == 1


async def test_send_to_all_prunes_stale_subscriptions(session_factory, seed, count_rows, webpush, mocker):
    """404/410 responses remove the subscription; other failures keep it."""
    async with session_factory() as db:
        service = PushService(db)
        for endpoint in ("https://push.example/ok", "https://push.example/gone", "https://push.example/flaky"):
            await service.save_subscription(subscription(endpoint))

    def fake_webpush(subscription_info, **kwargs):
        endpoint = subscription_info["endpoint"]
        if endpoint.endswith("/gone"):
            raise push_error(410, mocker)
        if endpoint.endswith("/flaky"):
            raise push_error(500, mocker)

    webpush.side_effect = fake_webpush

    async with session_factory() as db:
        sent = await PushService(db).send_to_all({"title": "Nuevo pedido", "body": "#1"})

    assert sent == 1
    assert webpush.call_count == 3
    assert count_rows(PushSubscription, endpoint="https://push.example/gone") == 0
    assert count_rows(PushSubscription, endpoint="https://push.example/flaky") == 1
    assert count_rows(PushSubscription, endpoint="https://push.example/ok") == 1


async def test_send_to_all_passes_vapid_claims(session_factory, seed, webpush):
    async with session_factory() as db:
        service = PushService(db)
        await service.save_subscription(subscription("https://push.example/a", p256dh="p", auth="a"))
        await service.send_to_all({"title": "Nuevo pedido"})

    kwargs = webpush.call_args.kwargs
    assert kwargs["subscription_info"] == {"endpoint": "https://push.example/a", "keys": {"p256dh": "p", "auth": "a"}}
    assert kwargs["data"] == '{"title": "Nuevo pedido"}'
    assert kwargs["vapid_claims"] == {"sub": settings.vapid_subject}


async def test_publisher_sends_push_for_new_orders(broadcaster, session_factory, mocker):
    send_to_all = mocker.patch.object(PushService, "send_to_all", mocker.AsyncMock(return_value=2))
    publisher = OrderEventPublisher(broadcaster, session_factory=session_factory, push_enabled=True)

    publisher.publish_new_order({"id": 5, "status": "Pendiente"})
    publisher.publish_status_updated(5, "Listo")
    await publisher.drain()

    send_to_all.assert_awaited_once_with(
        {"title": "Nuevo pedido", "body": "Se registró el pedido #5", "data": {"orderId": 5}}
    )


async def test_publisher_push_failure_does_not_propagate(broadcaster, session_factory, subscriber, mocker):
    mocker.patch.object(PushService, "send_to_all", mocker.AsyncMock(side_effect=RuntimeError("vapid")))
    publisher = OrderEventPublisher(broadcaster, session_factory=session_factory, push_enabled=True)
    await broadcaster.connect(subscriber)

    publisher.publish_new_order({"id": 5})
    await publisher.drain()

    assert subscriber.events("new_order") == [{"event": "new_order", "data": {"id": 5}}]


def test_push_disabled_without_vapid_key(broadcaster, session_factory):
    assert not OrderEventPublisher(broadcaster, session_factory=session_factory).push_enabled
    assert not OrderEventPublisher(broadcaster).push_enabled


def test_public_key_not_configured(client):
    response = client.get("/api/push/public-key")

    assert response.status_code == 404


def test_public_key(client, mocker):
    mocker.patch.object(settings, "vapid_public_key", "BPublicKey")

    response = client.get("/api/push/public-key")

    assert response.status_code == 200
    assert response.json() == {"publicKey": "BPublicKey"}


def test_subscribe_and_unsubscribe(client, count_rows):
    body = {"endpoint": "https://push.example/abc", "keys": {"p256dh": "key", "auth": "auth"}}

    response = client.post("/api/push/subscribe", json=body)
    assert response.status_code == 201
    assert response.json() == {"message": "Suscripción guardada."}
    assert client.post("/api/push/subscribe", json=body).status_code == 201
    assert count_rows(PushSubscription) == 1

    response = client.post("/api/push/unsubscribe", json={"endpoint": body["endpoint"]})
    assert response.status_code == 200
    assert count_rows(PushSubscription) == 0

    assert client.post("/api/push/unsubscribe", json={"endpoint": body["endpoint"]}).status_code == 404


def test_subscribe_rejects_missing_keys(client):
    response = client.post("/api/push/subscribe", json={"endpoint": "https://push.example/abc"})

    assert response.status_code == 400
