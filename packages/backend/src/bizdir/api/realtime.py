"""Realtime API — stats, subscriber listing and business notifications.

Learn: Routes around the WebSocket hub:
- GET /realtime/stats → connection count, per-topic counts, analytics
- GET /businesses/:id/subscribers → connection ids on a business topic
- POST /businesses/:id/notifications → fan out an update / new_review event
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from bizdir.realtime.hub import RealtimeHub
from bizdir.schemas.notification import (
    NotificationCreate,
    NotificationRead,
    RealtimeStatsRead,
    SubscribersRead,
)
from bizdir.services.analytics_service import AnalyticsService
from bizdir.services.business_service import (
    NEW_REVIEW,
    BusinessService,
    InvalidBusinessIdError,
)

router = APIRouter()


def _get_hub(request: Request) -> RealtimeHub:
    return request.app.state.hub


def _get_analytics(request: Request) -> AnalyticsService:
    return request.app.state.analytics


def _get_service(request: Request) -> BusinessService:
    return request.app.state.business_service


# ─── Stats ───────────────────────────────────────────────


@router.get("/realtime/stats", response_model=RealtimeStatsRead)
async def realtime_stats(
    request: Request,
    hub: RealtimeHub = Depends(_get_hub),
    analytics: AnalyticsService = Depends(_get_analytics),
):
    """Live connection and subscription counts."""
    return RealtimeStatsRead(
        handler=request.app.state.ws_handler.name,
        analytics=analytics.snapshot(),
        **hub.stats(),
    )


# ─── Subscribers ─────────────────────────────────────────


@router.get("/businesses/{business_id}/subscribers", response_model=SubscribersRead)
async def list_subscribers(
    business_id: int,
    svc: BusinessService = Depends(_get_service),
):
    """List connection ids subscribed to a business."""
    try:
        ids = svc.subscriber_ids(business_id)
    except InvalidBusinessIdError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return SubscribersRead(business_id=business_id, subscribers=ids)


# ─── Notify ──────────────────────────────────────────────


@router.post(
    "/businesses/{business_id}/notifications",
    response_model=NotificationRead,
    status_code=202,
)
async def notify_business(
    business_id: int,
    body: NotificationCreate,
    svc: BusinessService = Depends(_get_service),
):
    """Push an event to every client subscribed to a business."""
    try:
        if body.type == NEW_REVIEW:
            delivered = await svc.broadcast_new_review(business_id, body.data)
        else:
            delivered = await svc.broadcast_update(business_id, body.data)
    except InvalidBusinessIdError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return NotificationRead(business_id=business_id, type=body.type, delivered=delivered)
