"""Pydantic request/response models for the Notifications API.

API schemas are separate from Protean commands (anti-corruption pattern).
"""

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class UpdateSettingsRequest(BaseModel):
    settings: dict[str, Any] = Field(
        ...,
        examples=[{"quiet_hours_enabled": True, "quiet_mode": "IMPORTANT_ONLY"}],
        description="Partial settings document; omitted fields keep their current value",
    )


class DispatchRequest(BaseModel):
    event_type: str = Field(..., examples=["ASSIGNMENT"])
    title: str = Field(..., min_length=1, max_length=500)
    body: str | None = None
    item_id: str | None = None
    actor_id: str | None = None
    user_ids: list[str] = []
    context: dict[str, Any] | None = None
    dedupe_key: str | None = Field(default=None, max_length=500)
    dedupe_window_minutes: int | None = Field(default=None, ge=0)
    include_subscriptions: bool = True


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class SettingsResponse(BaseModel):
    user_id: str
    settings: dict[str, Any]
    origins: dict[str, str]


class DispatchResponse(BaseModel):
    notification_ids: list[str]


class FeedEntryResponse(BaseModel):
    notification_id: str
    item_id: str | None = None
    actor_id: str | None = None
    event_type: str
    title: str
    priority: str
    sent_channels: list[str] = []
    created_at: str | None = None


class FeedResponse(BaseModel):
    notifications: list[FeedEntryResponse]


class DeliveryResponse(BaseModel):
    delivery_id: str
    channel: str
    status: str
    recipient: str | None = None
    error: str | None = None
    sent_at: str | None = None


class DeliveryListResponse(BaseModel):
    notification_id: str
    deliveries: list[DeliveryResponse]


class DeliveryStatResponse(BaseModel):
    date: str
    channel: str
    status: str
    count: int


class DeliveryStatsResponse(BaseModel):
    stats: list[DeliveryStatResponse]
