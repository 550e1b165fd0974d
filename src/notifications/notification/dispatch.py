"""Delivery orchestrator — the single entry point for notifying users about an event.

    resolve recipients (explicit + subscriptions)
      └─ per recipient:
           profile → effective settings → event gate / routing matrix
           → dedupe check → Notification → channel fan-out → persist

Recipients are processed sequentially and independently. Nothing a single
recipient or channel does (disabled event, duplicate, missing contact,
adapter failure) stops the others. Storage errors outside the degraded
subscription/dedupe lookups propagate to the caller.
"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

import structlog
from notifications.domain import notifications
from notifications.notification.capabilities import StorageCapabilities, custom_setting, get_capabilities
from notifications.notification.dedupe import as_utc, build_dedupe_key, is_duplicate
from notifications.notification.delivery import ChannelOutcome, Message, deliver
from notifications.notification.notification import DeliveryStatus, EventType, Notification
from notifications.notification.quiet_hours import is_quiet_hours_active, local_time
from notifications.notification.recipients import resolve_recipients
from notifications.notification.routing import route_event
from notifications.preference.resolver import PreferenceResolver, load_profile
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)

DEFAULT_DEDUPE_WINDOW_MINUTES = 10
DEFAULT_SEND_TIMEOUT_SECONDS = 10


class RecipientStatus(Enum):
    NOTIFIED = "notified"
    EVENT_DISABLED = "event_disabled"
    DUPLICATE = "duplicate"
    UNKNOWN_USER = "unknown_user"


@dataclass
class RecipientOutcome:
    user_id: str
    status: RecipientStatus
    notification_id: str | None = None
    deliveries: list[ChannelOutcome] = field(default_factory=list)


@dataclass
class DispatchSummary:
    """What a dispatch did, for logging and tests. Callers must not branch on it."""

    event_type: EventType
    dedupe_key: str
    capabilities: StorageCapabilities
    recipients: list[RecipientOutcome] = field(default_factory=list)

    def outcome_for(self, user_id) -> RecipientOutcome | None:
        return next((r for r in self.recipients if r.user_id == str(user_id)), None)

    @property
    def notification_ids(self) -> list[str]:
        return [r.notification_id for r in self.recipients if r.notification_id]

    def count(self, status: RecipientStatus) -> int:
        return sum(1 for r in self.recipients if r.status == status)

    def delivery_counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in DeliveryStatus}
        for recipient in self.recipients:
            for delivery in recipient.deliveries:
                counts[delivery.status.value] += 1
        return counts


@dataclass(frozen=True)
class DispatchContext:
    """Per-call inputs shared by every recipient of one dispatch."""

    event_type: EventType
    message: Message
    item_id: str | None
    actor_id: str | None
    context: dict | None
    dedupe_key: str
    dedupe_window_minutes: int
    now: datetime
    timezone: str
    send_timeout: float


def dispatch_notification(
    event_type,
    title: str,
    body: str | None = None,
    item_id=None,
    actor_id=None,
    user_ids=None,
    context: dict | None = None,
    dedupe_key: str | None = None,
    dedupe_window_minutes: int | None = None,
    include_subscriptions: bool = True,
    now: datetime | None = None,
) -> DispatchSummary:
    """Notify every resolved recipient about one domain event.

    Args:
        event_type: An EventType (or its value).
        title/body: Message content; chat and SMS get "title\\n\\nbody".
        item_id: Originating correspondence item, if any.
        actor_id: User who caused the event; None for system events.
        user_ids: Explicit recipients, always considered.
        context: Free-form metadata stored with each Notification.
        dedupe_key: Overrides the derived `EVENT:item:actor` key.
        dedupe_window_minutes: Overrides the configured window; 0 disables dedupe.
        include_subscriptions: Also notify users whose subscription rules match.
        now: Reference time for quiet hours and dedupe (defaults to current UTC time; naive means UTC).
    """
    event_type = EventType(event_type)
    now = as_utc(now) if now else datetime.now(UTC)
    capabilities = get_capabilities()

    if dedupe_window_minutes is None:
        dedupe_window_minutes = int(custom_setting("dedupe_window_minutes", DEFAULT_DEDUPE_WINDOW_MINUTES))

    ctx = DispatchContext(
        event_type=event_type,
        message=Message(title=title, body=body or None),
        item_id=str(item_id) if item_id else None,
        actor_id=str(actor_id) if actor_id else None,
        context=context,
        dedupe_key=dedupe_key or build_dedupe_key(event_type, item_id, actor_id),
        dedupe_window_minutes=dedupe_window_minutes,
        now=now,
        timezone=custom_setting("quiet_hours_timezone", "UTC"),
        send_timeout=float(custom_setting("send_timeout_seconds", DEFAULT_SEND_TIMEOUT_SECONDS)),
    )

    recipients = resolve_recipients(
        event_type,
        user_ids=user_ids,
        actor_id=ctx.actor_id,
        include_subscriptions=include_subscriptions,
        capabilities=capabilities,
    )

    summary = DispatchSummary(event_type=event_type, dedupe_key=ctx.dedupe_key, capabilities=capabilities)
    resolver = PreferenceResolver()

    with structlog.contextvars.bound_contextvars(event_type=event_type.value, dedupe_key=ctx.dedupe_key):
        for user_id in recipients:
            summary.recipients.append(_dispatch_to_recipient(user_id, ctx, resolver, capabilities))

    logger.info(
        "Notification dispatched",
        event_type=event_type.value,
        item_id=ctx.item_id,
        recipients=len(recipients),
        notified=summary.count(RecipientStatus.NOTIFIED),
        duplicates=summary.count(RecipientStatus.DUPLICATE),
        disabled=summary.count(RecipientStatus.EVENT_DISABLED),
        deliveries=summary.delivery_counts(),
    )

    return summary


def _dispatch_to_recipient(
    user_id: str,
    ctx: DispatchContext,
    resolver: PreferenceResolver,
    capabilities: StorageCapabilities,
) -> RecipientOutcome:
    profile = load_profile(user_id)
    if profile is None:
        logger.warning("Unknown notification recipient, skipping", user_id=user_id)
        return RecipientOutcome(user_id, RecipientStatus.UNKNOWN_USER)

    settings = resolver.resolve(user_id, profile).settings

    route = route_event(settings, ctx.event_type)
    if route is None:
        logger.debug("Event disabled by user", user_id=user_id)
        return RecipientOutcome(user_id, RecipientStatus.EVENT_DISABLED)

    if is_duplicate(user_id, ctx.dedupe_key, ctx.dedupe_window_minutes, capabilities, now=ctx.now):
        logger.info("Duplicate notification suppressed", user_id=user_id)
        return RecipientOutcome(user_id, RecipientStatus.DUPLICATE)

    notification = Notification.create(
        user_id=user_id,
        event_type=ctx.event_type.value,
        title=ctx.message.title,
        body=ctx.message.body,
        priority=route.priority.value,
        item_id=ctx.item_id,
        actor_id=ctx.actor_id,
        dedupe_key=ctx.dedupe_key if capabilities.dedupe else None,
        context=ctx.context,
        created_at=ctx.now,
    )

    quiet_hours_active = is_quiet_hours_active(
        local_time(ctx.now, ctx.timezone),
        settings.quiet_hours_start,
        settings.quiet_hours_end,
        settings.quiet_hours_enabled,
    )

    deliveries = deliver(
        profile,
        route,
        ctx.event_type,
        ctx.message,
        quiet_hours_active,
        settings.quiet_mode,
        timeout=ctx.send_timeout,
    )
    for outcome in deliveries:
        notification.record_delivery(
            outcome.channel.value,
            outcome.status.value,
            recipient=outcome.recipient,
            error=outcome.error,
            recorded_at=ctx.now,
        )

    current_domain.repository_for(Notification).add(notification)

    return RecipientOutcome(
        user_id,
        RecipientStatus.NOTIFIED,
        notification_id=str(notification.id),
        deliveries=deliveries,
    )


# ---------------------------------------------------------------------------
# Command surface
# ---------------------------------------------------------------------------
@notifications.command(part_of="Notification")
class DispatchNotification:
    """Notify users about a domain event."""

    event_type: String(choices=EventType, required=True)
    title: String(required=True, max_length=500)
    body: Text()
    item_id: Identifier()
    actor_id: Identifier()
    user_ids: Text()  # JSON list of user ids
    context: Text()  # JSON object
    dedupe_key: String(max_length=500)
    dedupe_window_minutes: Integer(min_value=0)
    include_subscriptions: Boolean(default=True)


@notifications.command_handler(part_of=Notification)
class DispatchNotificationHandler:
    @handle(DispatchNotification)
    def dispatch(self, command: DispatchNotification):
        summary = dispatch_notification(
            event_type=command.event_type,
            title=command.title,
            body=command.body,
            item_id=command.item_id,
            actor_id=command.actor_id,
            user_ids=json.loads(command.user_ids) if command.user_ids else [],
            context=json.loads(command.context) if command.context else None,
            dedupe_key=command.dedupe_key,
            dedupe_window_minutes=command.dedupe_window_minutes,
            include_subscriptions=command.include_subscriptions,
        )
        return summary.notification_ids
