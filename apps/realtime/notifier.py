from __future__ import annotations

import json
import logging
from typing import Any

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.serializers.json import DjangoJSONEncoder

log = logging.getLogger(__name__)

# Consumer method invoked for every published event (type "realtime.event").
EVENT_HANDLER = "realtime.event"


def _jsonable(payload: Any) -> Any:
    # Channel layers serialize with msgpack; UUIDs and datetimes must become strings first.
    return json.loads(json.dumps(payload, cls=DjangoJSONEncoder))


def publish(topic: str, event: str, payload: Any = None) -> bool:
    """Fan ``event`` out to everyone currently subscribed to ``topic``.

    Delivery is at-most-once: nothing is stored, so subscribers that are not
    connected right now never see it. Failures are logged and reported as
    ``False`` rather than raised; callers never depend on delivery.
    """
    layer = get_channel_layer()
    if layer is None:
        log.warning("No channel layer configured; dropping %s on %s", event, topic)
        return False
    message = {"type": EVENT_HANDLER, "event": event, "data": _jsonable(payload)}
    try:
        async_to_sync(layer.group_send)(topic, message)
    except Exception:
        log.exception("Failed to publish %s on %s", event, topic)
        return False
    log.debug("Published %s on %s", event, topic)
    return True
