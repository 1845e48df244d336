"""Connection handle — one live WebSocket channel to a client.

Learn: The transport (Starlette) owns the socket. The registry and
subscription index only hold references to this wrapper, which adds a
process-unique id and an explicit CONNECTED → CLOSED state so nothing
is ever sent after the connection is released.
"""

import enum
import itertools
from datetime import datetime, timezone
from typing import Optional, Union

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

logger = structlog.get_logger()

Payload = Union[str, bytes]

# Process-wide id sequence; ids are never reused within a process
_connection_ids = itertools.count(1)


class ConnectionClosedError(Exception):
    """Raised when sending to a connection that is already closed."""


class ConnectionState(str, enum.Enum):
    CONNECTED = "connected"
    CLOSED = "closed"


class Connection:
    """A registered client channel. Hashes by identity."""

    def __init__(self, websocket: WebSocket):
        self.id: int = next(_connection_ids)
        self.websocket = websocket
        self.state = ConnectionState.CONNECTED
        self.opened_at = datetime.now(timezone.utc)
        client = getattr(websocket, "client", None)
        self.client: Optional[str] = f"{client.host}:{client.port}" if client else None

    def __repr__(self) -> str:
        return f"<Connection id={self.id} state={self.state.value}>"

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    async def send(self, payload: Payload) -> None:
        """Send one frame. Text stays text, bytes stay bytes."""
        if not self.is_open:
            raise ConnectionClosedError(f"Connection {self.id} is closed")
        if isinstance(payload, bytes):
            await self.websocket.send_bytes(payload)
        else:
            await self.websocket.send_text(payload)

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        """Move to CLOSED and close the socket if the transport still has it open.

        Safe to call more than once.
        """
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED

        if self.websocket.client_state != WebSocketState.CONNECTED:
            return
        try:
            await self.websocket.close(code=code, reason=reason)
        except (RuntimeError, WebSocketDisconnect) as e:
            # Socket already torn down by the peer
            logger.debug("ws.close_skipped", connection_id=self.id, error=str(e))
