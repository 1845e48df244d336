"""Subscription index — business id → set of subscribed connections.

Learn: Topics are plain business ids; the index never checks that a
business exists (that is the business service's call). Empty topic sets
are pruned so topic_counts() only reports live subscriptions.

Removal on close scans every topic. Subscriptions are few compared to
connection churn, so no reverse index is kept.
"""

from bizdir.realtime.connection import Connection
from bizdir.realtime.registry import ConnectionRegistry


class SubscriptionIndex:
    """Per-business subscriber sets, guarded by the registry's lock."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self.lock = registry.lock
        self._topics: dict[int, set[Connection]] = {}

    def subscribe(self, topic: int, connection: Connection) -> bool:
        """Add connection to topic. Returns False if it was already subscribed."""
        with self.lock:
            subscribers = self._topics.setdefault(topic, set())
            if connection in subscribers:
                return False
            subscribers.add(connection)
            return True

    def unsubscribe(self, topic: int, connection: Connection) -> bool:
        """Remove connection from topic. Returns False if it was not subscribed."""
        with self.lock:
            subscribers = self._topics.get(topic)
            if not subscribers or connection not in subscribers:
                return False
            subscribers.discard(connection)
            if not subscribers:
                del self._topics[topic]
            return True

    def subscribers_of(self, topic: int) -> frozenset[Connection]:
        with self.lock:
            return frozenset(self._topics.get(topic, ()))

    def remove_connection_everywhere(self, connection: Connection) -> list[int]:
        """Drop connection from every topic. Returns the topics it left."""
        removed = []
        with self.lock:
            for topic in list(self._topics):
                subscribers = self._topics[topic]
                if connection in subscribers:
                    subscribers.discard(connection)
                    removed.append(topic)
                    if not subscribers:
                        del self._topics[topic]
        return removed

    def topics_of(self, connection: Connection) -> list[int]:
        with self.lock:
            return sorted(t for t, subs in self._topics.items() if connection in subs)

    def topic_counts(self) -> dict[int, int]:
        with self.lock:
            return {topic: len(subs) for topic, subs in sorted(self._topics.items())}
