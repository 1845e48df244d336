"""bizdir — business directory realtime notification service.

The WebSocket layer of the business directory: a connection registry,
per-business topic subscriptions, and fan-out of business events
(updates, new reviews) to subscribed clients.
"""

__version__ = "0.1.0"
