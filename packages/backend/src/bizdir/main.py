"""FastAPI application factory.

Learn: App factory pattern. create_app() returns a configured FastAPI
instance. The realtime hub, services and the selected frame processor
are built here, once per app, and hung on app.state; routes and the
WebSocket endpoint read them from there instead of from module globals.
Lifespan only logs and closes whatever connections are still open.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bizdir import __version__
from bizdir.api import api_router
from bizdir.config import Settings, settings as default_settings
from bizdir.logging import configure_logging
from bizdir.realtime.handlers import build_handler
from bizdir.realtime.hub import RealtimeHub
from bizdir.realtime.websocket import websocket_endpoint
from bizdir.services.analytics_service import AnalyticsService
from bizdir.services.business_service import BusinessService

logger = structlog.get_logger()

# Close code sent to clients still connected at shutdown
GOING_AWAY = 1001


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` at shutdown.
    """
    cfg: Settings = app.state.settings
    configure_logging("DEBUG" if cfg.debug else cfg.log_level, json_logs=cfg.log_json)

    logger.info(
        "bizdir.starting",
        version=__version__,
        environment=cfg.environment,
        handler=cfg.ws_handler,
        host=cfg.ws_host,
        port=cfg.ws_port,
        path=cfg.ws_path,
    )

    yield

    # Shutdown
    hub: RealtimeHub = app.state.hub
    open_connections = hub.registry.snapshot()
    logger.info("bizdir.shutdown", open_connections=len(open_connections))

    handler = app.state.ws_handler
    for connection in open_connections:
        await handler.disconnect(connection, code=GOING_AWAY, reason="Server shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    cfg = settings or default_settings

    app = FastAPI(
        title="Business Directory Realtime",
        description="Live business notifications over WebSocket",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Realtime state (one hub per app) ─────────────────────
    hub = RealtimeHub()
    analytics = AnalyticsService()
    business_service = BusinessService(hub)

    app.state.settings = cfg
    app.state.hub = hub
    app.state.analytics = analytics
    app.state.business_service = business_service
    app.state.ws_handler = build_handler(
        cfg.ws_handler,
        hub,
        analytics,
        business_service,
        strict_commands=cfg.strict_commands,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → CORS → handler

    from bizdir.middleware.request_id import RequestIdMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    # Mount API routes
    app.include_router(api_router)

    # Mount WebSocket route
    app.add_api_websocket_route(cfg.ws_path, websocket_endpoint)

    return app


# Default app instance (used by uvicorn: bizdir.main:app)
app = create_app()
