"""Business subscription + notification service.

Learn: This is the domain-side entry point to the realtime hub:
1. subscribe / unsubscribe: called by the notification handler for
   client commands; validates the pairing before touching the index
2. broadcast_update / broadcast_new_review: called by the CRUD layer
   (via POST /businesses/{id}/notifications) after a business changes
   or a review is posted

subscribe/unsubscribe are synchronous and raise; the WebSocket handler
turns the exception message into an error frame.
"""

from typing import Any

import structlog

from bizdir.realtime.connection import Connection
from bizdir.realtime.hub import RealtimeHub

logger = structlog.get_logger()

# Broadcast payload types
BUSINESS_UPDATED = "update"
NEW_REVIEW = "new_review"


class ConnectionNotFoundError(Exception):
    """Raised when a connection is not registered with the hub."""


class InvalidBusinessIdError(ValueError):
    """Raised when a business id is not a positive integer."""


def _validate_business_id(business_id: Any) -> int:
    if isinstance(business_id, bool) or not isinstance(business_id, int):
        raise InvalidBusinessIdError("Business ID must be an integer")
    if business_id <= 0:
        raise InvalidBusinessIdError("Business ID must be a positive integer")
    return business_id


class BusinessService:
    """Attaches connections to business topics and publishes business events."""

    def __init__(self, hub: RealtimeHub):
        self.hub = hub

    # ─── Subscriptions ────────────────────────────────────

    def subscribe(self, connection: Connection, business_id: int) -> None:
        """Subscribe a registered connection to a business's events."""
        business_id = _validate_business_id(business_id)
        with self.hub.lock:
            # Check and insert under one lock so a racing close can't slip between
            if not self.hub.registry.has(connection):
                raise ConnectionNotFoundError("Connection not found")
            added = self.hub.subscriptions.subscribe(business_id, connection)
        logger.info(
            "ws.subscribed",
            connection_id=connection.id,
            business_id=business_id,
            already_subscribed=not added,
        )

    def unsubscribe(self, connection: Connection, business_id: int) -> None:
        """Remove a connection from a business's events."""
        business_id = _validate_business_id(business_id)
        with self.hub.lock:
            if not self.hub.registry.has(connection):
                raise ConnectionNotFoundError("Connection not found")
            removed = self.hub.subscriptions.unsubscribe(business_id, connection)
        logger.info(
            "ws.unsubscribed",
            connection_id=connection.id,
            business_id=business_id,
            was_subscribed=removed,
        )

    def subscriber_ids(self, business_id: int) -> list[int]:
        business_id = _validate_business_id(business_id)
        return sorted(c.id for c in self.hub.subscriptions.subscribers_of(business_id))

    # ─── Broadcasts ───────────────────────────────────────

    async def broadcast_update(self, business_id: int, data: dict[str, Any]) -> int:
        """Notify subscribers that a business's details changed."""
        business_id = _validate_business_id(business_id)
        return await self.hub.dispatcher.notify(business_id, {
            "type": BUSINESS_UPDATED,
            "businessId": business_id,
            "data": data,
        })

    async def broadcast_new_review(self, business_id: int, review: dict[str, Any]) -> int:
        """Notify subscribers that a review was posted for a business."""
        business_id = _validate_business_id(business_id)
        return await self.hub.dispatcher.notify(business_id, {
            "type": NEW_REVIEW,
            "businessId": business_id,
            "review": review,
        })
