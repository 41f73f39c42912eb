from __future__ import annotations

import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from . import topics

log = logging.getLogger(__name__)


class TrackingConsumer(AsyncJsonWebsocketConsumer):
    """WebSocket endpoint for order tracking.

    Every connection joins the broadcast topic; authenticated users also join
    their own user topic. Order and public tracking topics are joined and left
    explicitly by the client:

        {"action": "joinOrderTracking", "orderNumber": 42}
        {"action": "leaveOrderTracking", "orderNumber": 42}
        {"action": "joinPublicOrderTracking"}
        {"action": "leavePublicOrderTracking"}
    """

    async def connect(self):
        self.joined: set[str] = set()
        await self.accept()
        await self._join(topics.BROADCAST)
        user = self.scope.get("user")
        if user is not None and getattr(user, "is_authenticated", False):
            await self._join(topics.user_topic(user.id))
        log.info("Client connected: %s", self.channel_name)

    async def disconnect(self, code):
        for topic in list(getattr(self, "joined", ())):
            await self.channel_layer.group_discard(topic, self.channel_name)
        log.info("Client disconnected: %s (code=%s)", self.channel_name, code)

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict):
            await self.send_json({"event": "error", "data": {"message": "invalid message"}})
            return
        action = content.get("action")
        if action in ("joinOrderTracking", "leaveOrderTracking"):
            try:
                topic = topics.order_topic(content.get("orderNumber"))
            except (TypeError, ValueError):
                await self.send_json({"event": "error", "data": {"message": "Invalid order number"}})
                return
            if action == "joinOrderTracking":
                await self._join(topic)
            else:
                await self._leave(topic)
        elif action == "joinPublicOrderTracking":
            await self._join(topics.PUBLIC_ORDERS)
        elif action == "leavePublicOrderTracking":
            await self._leave(topics.PUBLIC_ORDERS)
        else:
            await self.send_json({"event": "error", "data": {"message": "unknown action"}})
            return
        await self.send_json({"event": "ack", "data": {"action": action, "topics": sorted(self.joined)}})

    async def realtime_event(self, message):
        await self.send_json({"event": message["event"], "data": message.get("data")})

    async def _join(self, topic: str):
        await self.channel_layer.group_add(topic, self.channel_name)
        self.joined.add(topic)
        log.info("%s joined %s", self.channel_name, topic)

    async def _leave(self, topic: str):
        await self.channel_layer.group_discard(topic, self.channel_name)
        self.joined.discard(topic)
        log.info("%s left %s", self.channel_name, topic)
