"""Routing matrix — which channels an event may use for a user, and at what priority.

Two lookups, both exhaustive over closed enums and checked at import:

- EVENT_GATES: event type → the user-level "notify on ..." switch. Both
  deadline events share one switch.
- CHANNEL_SWITCHES: channel → the user-level master switch.

The matrix row is the single source of truth for priority.
"""

from dataclasses import dataclass

from notifications.notification.notification import Channel, EventType, Priority
from notifications.preference.settings import DEFAULT_SETTINGS, NotificationSettings

EVENT_GATES = {
    EventType.NEW_ITEM: "notify_on_new_item",
    EventType.STATUS_CHANGE: "notify_on_status_change",
    EventType.COMMENT: "notify_on_comment",
    EventType.ASSIGNMENT: "notify_on_assignment",
    EventType.DEADLINE_URGENT: "notify_on_deadline",
    EventType.DEADLINE_OVERDUE: "notify_on_deadline",
    EventType.SYSTEM: "notify_on_system",
}

CHANNEL_SWITCHES = {
    Channel.IN_APP: "in_app_notifications",
    Channel.EMAIL: "email_notifications",
    Channel.CHAT: "chat_notifications",
    Channel.SMS: "sms_notifications",
    Channel.PUSH: "push_notifications",
}

_missing_gates = set(EventType) - set(EVENT_GATES)
if _missing_gates:
    raise RuntimeError(f"No event gate for: {sorted(e.value for e in _missing_gates)}")

_missing_switches = set(Channel) - set(CHANNEL_SWITCHES)
if _missing_switches:
    raise RuntimeError(f"No channel switch for: {sorted(c.value for c in _missing_switches)}")


@dataclass(frozen=True)
class Route:
    candidate_channels: frozenset
    priority: Priority

    def is_candidate(self, channel: Channel) -> bool:
        return channel in self.candidate_channels


def is_event_enabled(settings: NotificationSettings, event_type: EventType) -> bool:
    return getattr(settings, EVENT_GATES[event_type])


def route_event(settings: NotificationSettings, event_type: EventType) -> Route | None:
    """Candidate channels and priority, or None when the user has the event switched off."""
    if not is_event_enabled(settings, event_type):
        return None

    row = settings.matrix_row(event_type) or DEFAULT_SETTINGS.matrix_row(event_type)

    candidates = frozenset(
        channel for channel in Channel if row.channels.enabled(channel) and getattr(settings, CHANNEL_SWITCHES[channel])
    )
    return Route(candidate_channels=candidates, priority=row.priority)
