"""WebSocket endpoint — drives the selected frame processor per connection.

Learn: Each client connects to /ws (BIZDIR_WS_PATH). The handler:
1. Accepts the socket and wraps it in a Connection
2. Calls on_open (register + analytics)
3. Feeds every inbound frame, text or bytes, to on_message
4. On a transport failure calls on_error (force-close)
5. Always finishes with on_close (detach + sweep + analytics)

One long-lived connection per browser tab. Frames from one connection
are handled one at a time; different connections run concurrently.
"""

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from bizdir.realtime.connection import Connection
from bizdir.realtime.handlers import FrameProcessor

logger = structlog.get_logger()


async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for business notifications (or relay)."""
    handler: FrameProcessor = websocket.app.state.ws_handler

    await websocket.accept()
    connection = Connection(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection.id)

    await handler.on_open(connection)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            payload = message.get("text")
            if payload is None:
                payload = message.get("bytes")
            if payload is None:
                continue

            await handler.on_message(connection, payload)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception("ws.transport_error", connection_id=connection.id)
        await handler.on_error(connection, e)
    finally:
        await handler.on_close(connection)
        structlog.contextvars.unbind_contextvars("connection_id")
