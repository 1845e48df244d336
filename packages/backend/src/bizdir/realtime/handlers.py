"""Frame processors — what the server does with each inbound frame.

Learn: One interface, two variants, chosen at startup (BIZDIR_WS_HANDLER):

- RelayHandler: every frame from one client is forwarded verbatim to all
  other connected clients. No parsing, no topics.
- BusinessNotificationHandler: frames are subscribe/unsubscribe commands
  for per-business topics, each answered with a success or error frame.

Both share the lifecycle: on_open attaches to the hub, on_close releases
(detach + sweep) and closes, on_error records the error, then releases
and force-closes. A connection always leaves the hub before its socket
is closed. Each connection is CONNECTED from open until close or error,
then CLOSED.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import structlog

from bizdir.realtime.connection import Connection, Payload
from bizdir.realtime.hub import RealtimeHub
from bizdir.realtime.protocol import (
    BUSINESS_ID_REQUIRED,
    SUBSCRIBE,
    SUBSCRIBED,
    UNSUBSCRIBE,
    UNSUBSCRIBED,
    InboundFrame,
    decode_frame,
    error_frame,
    parse_business_id,
    success_frame,
)
from bizdir.services.analytics_service import AnalyticsService
from bizdir.services.business_service import BusinessService

logger = structlog.get_logger()

# Close code for unrecoverable server-side errors (RFC 6455)
INTERNAL_ERROR = 1011


class FrameProcessor(ABC):
    """Lifecycle callbacks the WebSocket route drives for every connection."""

    name: str = ""

    def __init__(self, hub: RealtimeHub, analytics: AnalyticsService):
        self.hub = hub
        self.analytics = analytics

    async def on_open(self, connection: Connection) -> None:
        self.hub.registry.attach(connection)
        self._track(self.analytics.track_connection, connection)

    async def on_close(self, connection: Connection) -> None:
        """Release the connection. Runs once per connection, errors included."""
        await self.disconnect(connection)

    async def on_error(self, connection: Connection, error: Exception) -> None:
        """Transport-level failure: record it, then force-close."""
        self._track(self.analytics.track_error, error)
        await self.disconnect(connection, code=INTERNAL_ERROR)

    async def disconnect(
        self,
        connection: Connection,
        code: int = 1000,
        reason: Optional[str] = None,
    ) -> None:
        """Release from the hub, then close the socket.

        Disconnection is tracked by whichever call actually released it,
        so close after error (or after shutdown) counts once.
        """
        was_attached = self.hub.release(connection)
        await connection.close(code=code, reason=reason)
        if was_attached:
            self._track(self.analytics.track_disconnection, connection)

    @abstractmethod
    async def on_message(self, connection: Connection, payload: Payload) -> None:
        """Handle one inbound frame."""

    def _track(self, hook: Callable[[Any], None], arg: Any) -> None:
        """Call an analytics hook; its failure never reaches the connection."""
        try:
            hook(arg)
        except Exception as e:
            logger.warning(
                "analytics.failed",
                hook=getattr(hook, "__name__", repr(hook)),
                error=str(e),
            )


class RelayHandler(FrameProcessor):
    """Forwards every frame to all other connected clients."""

    name = "relay"

    async def on_message(self, connection: Connection, payload: Payload) -> None:
        logger.info(
            "ws.relay",
            connection_id=connection.id,
            size=len(payload),
        )
        await self.hub.registry.broadcast_except(connection, payload)


class BusinessNotificationHandler(FrameProcessor):
    """subscribe/unsubscribe protocol for per-business notifications."""

    name = "notifications"

    def __init__(
        self,
        hub: RealtimeHub,
        analytics: AnalyticsService,
        business_service: BusinessService,
        *,
        strict_commands: bool = False,
    ):
        super().__init__(hub, analytics)
        self.business_service = business_service
        self.strict_commands = strict_commands

    async def on_message(self, connection: Connection, payload: Payload) -> None:
        # Any failure while handling this frame is reported to this client only
        try:
            frame = decode_frame(payload)

            if frame.type == SUBSCRIBE:
                await self._handle_subscription(connection, frame)
            elif frame.type == UNSUBSCRIBE:
                await self._handle_unsubscription(connection, frame)
            else:
                await self._handle_unknown(connection, frame)
        except Exception as e:
            await connection.send(error_frame(str(e)))

    async def _handle_subscription(self, connection: Connection, frame: InboundFrame) -> None:
        business_id = parse_business_id(frame.business_id)
        if business_id is None:
            await connection.send(error_frame(BUSINESS_ID_REQUIRED))
            return

        self.business_service.subscribe(connection, business_id)
        await connection.send(success_frame(SUBSCRIBED))

    async def _handle_unsubscription(self, connection: Connection, frame: InboundFrame) -> None:
        business_id = parse_business_id(frame.business_id)
        if business_id is None:
            await connection.send(error_frame(BUSINESS_ID_REQUIRED))
            return

        self.business_service.unsubscribe(connection, business_id)
        await connection.send(success_frame(UNSUBSCRIBED))

    async def _handle_unknown(self, connection: Connection, frame: InboundFrame) -> None:
        logger.debug("ws.unknown_command", connection_id=connection.id, type=frame.type)
        if self.strict_commands:
            await connection.send(error_frame(f"Unknown message type: {frame.type}"))


def build_handler(
    kind: str,
    hub: RealtimeHub,
    analytics: AnalyticsService,
    business_service: BusinessService,
    *,
    strict_commands: bool = False,
) -> FrameProcessor:
    """Create the frame processor selected by configuration."""
    if kind == RelayHandler.name:
        return RelayHandler(hub, analytics)
    if kind == BusinessNotificationHandler.name:
        return BusinessNotificationHandler(
            hub,
            analytics,
            business_service,
            strict_commands=strict_commands,
        )
    raise ValueError(f"Unknown WebSocket handler: {kind!r}")
