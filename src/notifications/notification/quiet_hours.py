"""Quiet hours — time-of-day suppression of outbound channels.

Windows are "HH:MM" strings and may wrap midnight (22:00–08:00). A window
whose start equals its end is empty. In-app notifications are never
suppressed: they accumulate for later viewing.
"""

from datetime import datetime, time
from zoneinfo import ZoneInfo

from notifications.notification.notification import Channel, EventType, Priority
from notifications.preference.settings import QuietMode

IMPORTANT_EVENTS = frozenset({EventType.DEADLINE_URGENT, EventType.DEADLINE_OVERDUE})
IMPORTANT_PRIORITIES = frozenset({Priority.HIGH, Priority.CRITICAL})


def _minutes(value: str) -> int | None:
    parts = (value or "").split(":")
    if len(parts) != 2:
        return None
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return hour * 60 + minute


def local_time(now: datetime, timezone: str = "UTC") -> time:
    """Time of day of `now` in the given zone (naive datetimes are taken as-is)."""
    if now.tzinfo is not None:
        now = now.astimezone(ZoneInfo(timezone))
    return now.time()


def is_quiet_hours_active(now: datetime | time, start: str, end: str, enabled: bool) -> bool:
    if not enabled:
        return False

    start_minutes = _minutes(start)
    end_minutes = _minutes(end)
    if start_minutes is None or end_minutes is None:
        return False

    current = now if isinstance(now, time) else now.time()
    current_minutes = current.hour * 60 + current.minute

    if start_minutes > end_minutes:
        return current_minutes >= start_minutes or current_minutes < end_minutes
    return start_minutes <= current_minutes < end_minutes


def is_important(event_type: EventType, priority: Priority) -> bool:
    return event_type in IMPORTANT_EVENTS or priority in IMPORTANT_PRIORITIES


def should_suppress(
    channel: Channel,
    quiet_hours_active: bool,
    quiet_mode: QuietMode,
    priority: Priority,
    event_type: EventType,
) -> bool:
    """Whether delivery on `channel` is skipped because of quiet hours."""
    if not quiet_hours_active or channel == Channel.IN_APP:
        return False
    if quiet_mode == QuietMode.ALL:
        return True
    return not is_important(event_type, priority)
