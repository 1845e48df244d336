"""Real-time infrastructure — in-process WebSocket fan-out.

Learn: Events flow through two paths:
1. Client commands → WebSocket → subscription index (subscribe/unsubscribe)
2. Business events → dispatcher → every subscribed WebSocket

All state lives in one RealtimeHub per process. There is no broker:
delivery is best-effort and never leaves the process.
"""

from bizdir.realtime.connection import Connection, ConnectionClosedError, ConnectionState
from bizdir.realtime.hub import RealtimeHub

__all__ = ["Connection", "ConnectionClosedError", "ConnectionState", "RealtimeHub"]
