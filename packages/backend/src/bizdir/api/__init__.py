"""API route aggregation.

All routers registered here get mounted in main.py. The WebSocket
route is mounted separately (see bizdir.realtime.websocket).
"""

from fastapi import APIRouter

from bizdir.api.health import router as health_router
from bizdir.api.realtime import router as realtime_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(realtime_router, tags=["realtime", "notifications"])
