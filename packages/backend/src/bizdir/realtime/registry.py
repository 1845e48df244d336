"""Connection registry — the set of currently open connections.

Learn: The registry owns the hub's single lock. The subscription index
borrows the same lock so a close can detach and sweep atomically.
The lock is a threading.RLock and only ever guards synchronous set
operations; it is never held across an await, so sends happen on a
snapshot taken under the lock.
"""

import asyncio
import threading
from typing import Optional

import structlog

from bizdir.realtime.connection import Connection, Payload

logger = structlog.get_logger()


class ConnectionRegistry:
    """Tracks live connections for one hub."""

    def __init__(self, lock: Optional[threading.RLock] = None):
        self.lock = lock or threading.RLock()
        self._connections: set[Connection] = set()

    def attach(self, connection: Connection) -> bool:
        """Add a connection. Returns False if it was already registered."""
        with self.lock:
            if connection in self._connections:
                return False
            self._connections.add(connection)
            return True

    def detach(self, connection: Connection) -> bool:
        """Remove a connection. Returns False if it was not registered."""
        with self.lock:
            if connection not in self._connections:
                return False
            self._connections.discard(connection)
            return True

    def has(self, connection: Connection) -> bool:
        with self.lock:
            return connection in self._connections

    __contains__ = has

    def __len__(self) -> int:
        with self.lock:
            return len(self._connections)

    def snapshot(self) -> list[Connection]:
        """Copy of the current membership, safe to iterate while others mutate."""
        with self.lock:
            return list(self._connections)

    async def broadcast_except(self, sender: Connection, payload: Payload) -> int:
        """Forward payload verbatim to every connection except the sender.

        Best-effort: a failing connection is logged and skipped.
        Returns the number of successful deliveries.
        """
        targets = [c for c in self.snapshot() if c is not sender]
        if not targets:
            return 0

        results = await asyncio.gather(
            *(c.send(payload) for c in targets),
            return_exceptions=True,
        )

        delivered = 0
        for connection, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(
                    "ws.send_failed",
                    connection_id=connection.id,
                    error=str(result),
                )
            else:
                delivered += 1
        return delivered
