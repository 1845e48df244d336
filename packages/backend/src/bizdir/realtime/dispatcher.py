"""Notification dispatcher — fan-out of business events to subscribers.

Learn: Delivery is fire-and-forget, like Redis pub/sub. The subscriber
set is snapshotted once at call time; a connection that subscribes or
closes mid-dispatch is not observed. Failed sends are logged and never
retried. Clients that miss an event can re-read the business over the API.
"""

import asyncio
import json
from typing import Any

import structlog

from bizdir.realtime.subscriptions import SubscriptionIndex

logger = structlog.get_logger()


class NotificationDispatcher:
    """Pushes serialized payloads to every subscriber of a topic."""

    def __init__(self, subscriptions: SubscriptionIndex):
        self.subscriptions = subscriptions

    async def notify(self, topic: int, payload: dict[str, Any]) -> int:
        """Send payload to the topic's current subscribers.

        Returns the number of connections the frame was delivered to.
        """
        message = json.dumps(payload)
        targets = list(self.subscriptions.subscribers_of(topic))
        if not targets:
            logger.debug("notify.no_subscribers", topic=topic)
            return 0

        results = await asyncio.gather(
            *(c.send(message) for c in targets),
            return_exceptions=True,
        )

        delivered = 0
        for connection, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(
                    "notify.send_failed",
                    topic=topic,
                    connection_id=connection.id,
                    error=str(result),
                )
            else:
                delivered += 1

        logger.info(
            "notify.dispatched",
            topic=topic,
            subscribers=len(targets),
            delivered=delivered,
        )
        return delivered
