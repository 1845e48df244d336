"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
reports which WebSocket handler is active and how many clients are on it.
"""

from fastapi import APIRouter, Request

from bizdir import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health."""
    hub = request.app.state.hub
    return {
        "status": "healthy",
        "server": "ok",
        "version": __version__,
        "handler": request.app.state.ws_handler.name,
        "connections": len(hub.registry),
    }
