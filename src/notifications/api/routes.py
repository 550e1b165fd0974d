"""FastAPI routes for the Notifications domain.

Thin adapters that translate HTTP requests into domain commands and read
projections. No business logic — just schema→command→response translation.
"""

import json

from fastapi import APIRouter, Query
from notifications.api.schemas import (
    DeliveryListResponse,
    DeliveryResponse,
    DeliveryStatResponse,
    DeliveryStatsResponse,
    DispatchRequest,
    DispatchResponse,
    FeedEntryResponse,
    FeedResponse,
    SettingsResponse,
    UpdateSettingsRequest,
)
from notifications.notification.dispatch import DispatchNotification
from notifications.notification.notification import Channel
from notifications.preference.management import UpdateNotificationSettings
from notifications.preference.resolver import resolve_settings
from notifications.projections.delivery_log import DeliveryLog
from notifications.projections.delivery_stats import DeliveryStats
from notifications.projections.user_notification_feed import UserNotificationFeed
from protean.utils.globals import current_domain

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _iso(value) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
@router.get("/settings/{user_id}", response_model=SettingsResponse)
async def get_settings(user_id: str) -> SettingsResponse:
    """Get a user's effective notification settings (defaults filled in)."""
    resolved = resolve_settings(user_id)
    return SettingsResponse(
        user_id=user_id,
        settings=resolved.settings.to_document(),
        origins={name: origin.value for name, origin in resolved.origins.items()},
    )


@router.put("/settings/{user_id}", response_model=SettingsResponse)
async def update_settings(user_id: str, body: UpdateSettingsRequest) -> SettingsResponse:
    """Save part of a user's notification settings."""
    command = UpdateNotificationSettings(user_id=user_id, settings=json.dumps(body.settings))
    current_domain.process(command, asynchronous=False)
    return await get_settings(user_id)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------
@router.post("/dispatch", status_code=201, response_model=DispatchResponse)
def dispatch(body: DispatchRequest) -> DispatchResponse:
    """Notify users about a domain event."""
    command = DispatchNotification(
        event_type=body.event_type,
        title=body.title,
        body=body.body,
        item_id=body.item_id,
        actor_id=body.actor_id,
        user_ids=json.dumps(body.user_ids),
        context=json.dumps(body.context) if body.context else None,
        dedupe_key=body.dedupe_key,
        dedupe_window_minutes=body.dedupe_window_minutes,
        include_subscriptions=body.include_subscriptions,
    )
    notification_ids = current_domain.process(command, asynchronous=False)
    return DispatchResponse(notification_ids=notification_ids or [])


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------
@router.get("/feed/{user_id}", response_model=FeedResponse)
async def get_feed(user_id: str, limit: int = Query(50, ge=1, le=200)) -> FeedResponse:
    """A user's most recent notifications, newest first."""
    repo = current_domain.repository_for(UserNotificationFeed)
    entries = repo._dao.query.filter(user_id=user_id).order_by("-created_at").limit(limit).all().items

    return FeedResponse(
        notifications=[
            FeedEntryResponse(
                notification_id=str(e.notification_id),
                item_id=str(e.item_id) if e.item_id else None,
                actor_id=str(e.actor_id) if e.actor_id else None,
                event_type=e.event_type,
                title=e.title,
                priority=e.priority,
                sent_channels=[c for c in (e.sent_channels or "").split(",") if c],
                created_at=_iso(e.created_at),
            )
            for e in entries
        ]
    )


@router.get("/stats/deliveries", response_model=DeliveryStatsResponse)
async def get_delivery_stats(date: str | None = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$")) -> DeliveryStatsResponse:
    """Delivery counts per day, channel and status."""
    repo = current_domain.repository_for(DeliveryStats)
    query = repo._dao.query
    if date:
        query = query.filter(date=date)
    stats = query.limit(1000).all().items

    return DeliveryStatsResponse(
        stats=sorted(
            (DeliveryStatResponse(date=s.date, channel=s.channel, status=s.status, count=s.count) for s in stats),
            key=lambda s: (s.date, s.channel, s.status),
        )
    )


@router.get("/{notification_id}/deliveries", response_model=DeliveryListResponse)
async def get_deliveries(notification_id: str) -> DeliveryListResponse:
    """Per-channel outcomes of one notification."""
    repo = current_domain.repository_for(DeliveryLog)
    records = repo._dao.query.filter(notification_id=notification_id).all().items
    order = {channel.value: index for index, channel in enumerate(Channel)}

    return DeliveryListResponse(
        notification_id=notification_id,
        deliveries=[
            DeliveryResponse(
                delivery_id=str(d.delivery_id),
                channel=d.channel,
                status=d.status,
                recipient=d.recipient,
                error=d.error,
                sent_at=_iso(d.sent_at),
            )
            for d in sorted(records, key=lambda d: order.get(d.channel, len(order)))
        ],
    )
