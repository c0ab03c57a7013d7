"""Tests for EventBroadcaster fan-out semantics."""

import asyncio

from mercadoya.events.broadcaster import EventBroadcaster, OrderEvent


async def test_broadcast_reaches_every_subscriber(broadcaster, make_subscriber):
    subscribers = [make_subscriber() for _ in range(3)]
    for s in subscribers:
        await broadcaster.connect(s)

    delivered = await broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 1})

    assert delivered == 3
    for s in subscribers:
        assert s.messages == [{"event": "new_order", "data": {"id": 1}}]


async def test_broadcast_without_subscribers_is_a_noop(broadcaster):
    assert await broadcaster.broadcast(OrderEvent.STATUS_CHANGED, {"id": 1, "status": "Listo"}) == 0


async def test_failed_subscriber_is_dropped_and_others_still_receive(broadcaster, subscriber, failing_subscriber):
    """A send failure to one subscriber only removes that subscriber."""
    await broadcaster.connect(failing_subscriber)
    await broadcaster.connect(subscriber)

    assert await broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 1}) == 1
    assert broadcaster.connection_count == 1

    assert await broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 2}) == 1
    assert failing_subscriber.attempts == 1
    assert [m["data"]["id"] for m in subscriber.messages] == [1, 2]
    assert failing_subscriber.close_codes == [1011]
    assert subscriber.close_codes == []


async def test_slow_subscriber_times_out_without_blocking_others(broadcaster, subscriber, slow_subscriber):
    await broadcaster.connect(slow_subscriber)
    await broadcaster.connect(subscriber)

    delivered = await broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 1})

    assert delivered == 1
    assert subscriber.messages == [{"event": "new_order", "data": {"id": 1}}]
    assert slow_subscriber.messages == []
    assert broadcaster.connection_count == 1


async def test_slow_subscriber_connection_is_closed(broadcaster, slow_subscriber):
    """A subscriber dropped after a timeout gets its connection closed, so it can reconnect."""
    await broadcaster.connect(slow_subscriber)

    assert await broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 1}) == 0

    assert broadcaster.connection_count == 0
    assert slow_subscriber.close_codes == [1011]


async def test_close_failure_is_not_propagated(broadcaster, failing_subscriber, subscriber, mocker):
    failing_subscriber.close = mocker.AsyncMock(side_effect=RuntimeError("already closed"))
    await broadcaster.connect(failing_subscriber)
    await broadcaster.connect(subscriber)

    assert await broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 1}) == 1

    failing_subscriber.close.assert_awaited_once()
    assert broadcaster.connection_count == 1


async def test_broadcast_returns_before_delivery(make_subscriber):
    """The caller is not blocked by delivery; the task completes later."""
    gate = asyncio.Event()

    class GatedSubscriber(make_subscriber):
        async def send_json(self, data):
            await gate.wait()
            await super().send_json(data)

    broadcaster = EventBroadcaster(send_timeout=1)
    gated = GatedSubscriber()
    await broadcaster.connect(gated)

    task = broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 1})

    assert not task.done()
    assert gated.messages == []

    gate.set()
    await broadcaster.drain()

    assert task.result() == 1
    assert gated.messages == [{"event": "new_order", "data": {"id": 1}}]


async def test_late_subscriber_misses_earlier_events(broadcaster, subscriber, make_subscriber):
    early = make_subscriber()
    await broadcaster.connect(early)
    await broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 1})

    await broadcaster.connect(subscriber)
    await broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 2})

    assert [m["data"]["id"] for m in early.messages] == [1, 2]
    assert [m["data"]["id"] for m in subscriber.messages] == [2]


async def test_concurrent_connect_and_disconnect(broadcaster, make_subscriber):
    subscribers = [make_subscriber() for _ in range(50)]

    await asyncio.gather(*(broadcaster.connect(s) for s in subscribers))
    assert broadcaster.connection_count == 50

    await asyncio.gather(
        *(broadcaster.disconnect(s) for s in subscribers[:25]),
        broadcaster.broadcast(OrderEvent.NEW_ORDER, {"id": 1}),
    )
    await broadcaster.drain()

    assert broadcaster.connection_count == 25
    for s in subscribers[25:]:
        assert s.messages == [{"event": "new_order", "data": {"id": 1}}]


async def test_disconnect_unknown_subscriber_is_ignored(broadcaster, subscriber):
    await broadcaster.disconnect(subscriber)

    assert broadcaster.connection_count == 0
