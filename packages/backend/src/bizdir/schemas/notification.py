"""Pydantic schemas for business notifications and realtime stats.

Learn: The CRUD side of the directory posts a NotificationCreate after a
business is edited ("update") or a review is posted ("new_review").
The response only reports how many live connections got the frame;
delivery is best-effort, nothing is queued for offline clients.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class NotificationCreate(BaseModel):
    """Publish an event to a business's subscribers."""
    type: Literal["update", "new_review"] = Field(
        "update", description="Event type: update or new_review"
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Changed business fields, or the posted review",
    )


class NotificationRead(BaseModel):
    """Result of a fan-out."""
    business_id: int
    type: str
    delivered: int


class SubscribersRead(BaseModel):
    """Connections currently subscribed to a business."""
    business_id: int
    subscribers: list[int]


class RealtimeStatsRead(BaseModel):
    """Snapshot of the realtime hub and connection analytics."""
    handler: str
    connections: int
    topics: dict[int, int]
    analytics: dict[str, Any]
