"""Request ID middleware — unique ID per request for tracing.

Learn: Every HTTP request and WebSocket handshake gets a UUID, either
from the incoming X-Request-ID header or auto-generated, bound to
structlog's contextvars so it shows up in every log line.

Written as plain ASGI instead of BaseHTTPMiddleware because
BaseHTTPMiddleware only sees HTTP scopes; WebSocket connections would
otherwise log without a request id.
"""

import uuid

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER = "X-Request-ID"


class RequestIdMiddleware:
    """Generate and propagate a unique request ID."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(HEADER) or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        if scope["type"] == "websocket":
            await self.app(scope, receive, send)
            return

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[HEADER] = request_id
            await send(message)

        await self.app(scope, receive, send_with_request_id)
