"""Realtime hub — the per-process bundle of registry, index and dispatcher.

Learn: One hub is created by create_app() and stored on app.state;
everything that needs connection state receives it explicitly.
There is no module-level registry.
"""

from bizdir.realtime.connection import Connection
from bizdir.realtime.dispatcher import NotificationDispatcher
from bizdir.realtime.registry import ConnectionRegistry
from bizdir.realtime.subscriptions import SubscriptionIndex


class RealtimeHub:
    """Shared connection state for one server process."""

    def __init__(self):
        self.registry = ConnectionRegistry()
        self.subscriptions = SubscriptionIndex(self.registry)
        self.dispatcher = NotificationDispatcher(self.subscriptions)

    @property
    def lock(self):
        return self.registry.lock

    def release(self, connection: Connection) -> bool:
        """Detach a connection and sweep it from every topic in one step.

        Returns True if the connection was registered.
        """
        with self.lock:
            was_attached = self.registry.detach(connection)
            self.subscriptions.remove_connection_everywhere(connection)
        return was_attached

    def stats(self) -> dict:
        return {
            "connections": len(self.registry),
            "topics": self.subscriptions.topic_counts(),
        }
