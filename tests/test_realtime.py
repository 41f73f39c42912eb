import uuid
from types import SimpleNamespace

import pytest
from asgiref.sync import async_to_sync, sync_to_async
from channels.testing import WebsocketCommunicator

from apps.realtime import notifier, topics
from apps.realtime.consumers import TrackingConsumer

# channels closes stale DB connections on each consumer dispatch.
pytestmark = pytest.mark.django_db


def _as_user(app, user):
    async def _app(scope, receive, send):
        return await app(dict(scope, user=user), receive, send)

    return _app


def _communicator(user=None):
    app = TrackingConsumer.as_asgi()
    if user is not None:
        app = _as_user(app, user)
    return WebsocketCommunicator(app, "/ws/")


def test_order_tracking_subscription():
    async def scenario():
        comm = _communicator(SimpleNamespace(is_authenticated=True, id="u1"))
        connected, _ = await comm.connect()
        assert connected

        await comm.send_json_to({"action": "joinOrderTracking", "orderNumber": 7})
        ack = await comm.receive_json_from()
        assert ack == {
            "event": "ack",
            "data": {"action": "joinOrderTracking", "topics": ["broadcast", "order-7", "user-u1"]},
        }

        sent = await sync_to_async(notifier.publish)(
            topics.order_topic(7), "orderStatusUpdate", {"orderNumber": 7, "status": "ready"}
        )
        assert sent is True
        assert await comm.receive_json_from() == {
            "event": "orderStatusUpdate",
            "data": {"orderNumber": 7, "status": "ready"},
        }

        await sync_to_async(notifier.publish)(topics.user_topic("u1"), "orderCompleted", {"orderNumber": 7})
        assert (await comm.receive_json_from())["event"] == "orderCompleted"

        await comm.send_json_to({"action": "leaveOrderTracking", "orderNumber": 7})
        ack = await comm.receive_json_from()
        assert ack["data"]["topics"] == ["broadcast", "user-u1"]

        await sync_to_async(notifier.publish)(topics.order_topic(7), "orderStatusUpdate", {"orderNumber": 7})
        assert await comm.receive_nothing()
        await comm.disconnect()

    async_to_sync(scenario)()


def test_public_tracking_and_broadcast():
    async def scenario():
        comm = _communicator()
        connected, _ = await comm.connect()
        assert connected

        await comm.send_json_to({"action": "joinPublicOrderTracking"})
        ack = await comm.receive_json_from()
        assert ack["data"]["topics"] == ["broadcast", "public-orders"]

        await sync_to_async(notifier.publish)(topics.PUBLIC_ORDERS, "publicOrderDeleted", "abc")
        assert await comm.receive_json_from() == {"event": "publicOrderDeleted", "data": "abc"}

        await sync_to_async(notifier.publish)(topics.BROADCAST, "orderDeleted", "abc")
        assert await comm.receive_json_from() == {"event": "orderDeleted", "data": "abc"}

        await comm.send_json_to({"action": "leavePublicOrderTracking"})
        await comm.receive_json_from()
        await sync_to_async(notifier.publish)(topics.PUBLIC_ORDERS, "publicOrderUpdate", {})
        assert await comm.receive_nothing()
        await comm.disconnect()

    async_to_sync(scenario)()


def test_bad_messages_get_error_event():
    async def scenario():
        comm = _communicator()
        await comm.connect()

        await comm.send_json_to({"action": "joinOrderTracking", "orderNumber": "seven"})
        assert await comm.receive_json_from() == {"event": "error", "data": {"message": "Invalid order number"}}

        await comm.send_json_to({"action": "dance"})
        assert await comm.receive_json_from() == {"event": "error", "data": {"message": "unknown action"}}
        await comm.disconnect()

    async_to_sync(scenario)()


def test_publish_without_layer_reports_failure(monkeypatch):
    monkeypatch.setattr(notifier, "get_channel_layer", lambda: None)
    assert notifier.publish(topics.BROADCAST, "newOrder", {}) is False


def test_publish_serializes_uuids():
    value = uuid.uuid4()
    assert notifier._jsonable({"id": value}) == {"id": str(value)}
