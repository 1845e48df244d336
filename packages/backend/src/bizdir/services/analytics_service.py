"""Connection analytics — counters and log events for the WebSocket layer.

Learn: Handlers call track_* fire-and-forget; nothing they do depends on
the result, and a failure here must never affect a connection (the
handler catches and logs). Counters are in-process only and exposed via
GET /api/v1/realtime/stats.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

import structlog

from bizdir.realtime.connection import Connection

logger = structlog.get_logger()


@dataclass
class ConnectionMetrics:
    start_time: float = field(default_factory=time.time)

    connects_total: int = 0
    disconnects_total: int = 0
    errors_total: int = 0
    last_error: Optional[str] = None

    @property
    def active_connections(self) -> int:
        return self.connects_total - self.disconnects_total

    def snapshot(self) -> dict:
        return {
            "uptime_sec": round(time.time() - self.start_time, 2),
            "connects_total": self.connects_total,
            "disconnects_total": self.disconnects_total,
            "errors_total": self.errors_total,
            "active_connections": self.active_connections,
            "last_error": self.last_error,
        }


class AnalyticsService:
    """Records connection lifecycle events."""

    def __init__(self):
        self._lock = threading.Lock()
        self.metrics = ConnectionMetrics()

    def track_connection(self, connection: Connection) -> None:
        with self._lock:
            self.metrics.connects_total += 1
        logger.info(
            "ws.connected",
            connection_id=connection.id,
            client=connection.client,
        )

    def track_disconnection(self, connection: Connection) -> None:
        with self._lock:
            self.metrics.disconnects_total += 1
        logger.info(
            "ws.disconnected",
            connection_id=connection.id,
            client=connection.client,
        )

    def track_error(self, error: BaseException) -> None:
        message = str(error) or type(error).__name__
        with self._lock:
            self.metrics.errors_total += 1
            self.metrics.last_error = message
        logger.error("ws.error", error=message, error_type=type(error).__name__)

    def snapshot(self) -> dict:
        with self._lock:
            return self.metrics.snapshot()
