"""Deduplication guard — at most one notification per user per logical event per window.

The check runs per recipient and is best-effort: two dispatches racing for
the same user and key may both pass before either is persisted.
"""

from datetime import UTC, datetime, timedelta

import structlog
from notifications.notification.capabilities import StorageCapabilities
from notifications.notification.notification import EventType, Notification
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


def build_dedupe_key(event_type: EventType, item_id=None, actor_id=None) -> str:
    """Derived key `EVENT:item-or-none:actor-or-system`."""
    return f"{event_type.value}:{item_id or 'none'}:{actor_id or 'system'}"


def as_utc(moment: datetime) -> datetime:
    """Timestamps are stored and compared in UTC; naive values are taken to be UTC already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def is_duplicate(
    user_id,
    dedupe_key: str,
    window_minutes: int,
    capabilities: StorageCapabilities,
    now: datetime | None = None,
) -> bool:
    """Whether `user_id` already has a notification with `dedupe_key` inside the window.

    A zero window, or dedupe being unavailable, means never a duplicate. A
    storage failure switches dedupe off on `capabilities` for the rest of
    the dispatch.
    """
    if window_minutes <= 0 or not capabilities.dedupe:
        return False

    since = as_utc(now or datetime.now(UTC)) - timedelta(minutes=window_minutes)

    repo = current_domain.repository_for(Notification)
    try:
        recent = (
            repo._dao.query.filter(user_id=str(user_id), dedupe_key=dedupe_key, created_at__gte=since)
            .limit(1)
            .all()
            .items
        )
    except Exception as exc:
        capabilities.dedupe = False
        logger.warning(
            "Deduplication unavailable, continuing without it",
            user_id=str(user_id),
            dedupe_key=dedupe_key,
            error=str(exc),
        )
        return False

    return bool(recent)
