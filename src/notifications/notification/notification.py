"""Notification aggregate (CQRS) — one notification per event per recipient.

A Notification is created once a recipient passes the event gate and the
deduplication check. Each channel the engine considered for that recipient
is recorded as a NotificationDelivery entity. Both are append-only: there
are no transitions, only the factory and `record_delivery`.

    Notification (1) ──< NotificationDelivery (N)
        IN_APP   → SENT
        EMAIL    → SENT | FAILED | SKIPPED
        CHAT     → SENT | FAILED | SKIPPED
        SMS      → SENT | FAILED | SKIPPED
        PUSH     → SKIPPED (push_not_supported)
"""

import json
from datetime import UTC, datetime
from enum import Enum

from notifications.domain import notifications
from notifications.notification.events import DeliveryRecorded, NotificationCreated
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, String, Text


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class EventType(Enum):
    NEW_ITEM = "NEW_ITEM"
    STATUS_CHANGE = "STATUS_CHANGE"
    COMMENT = "COMMENT"
    ASSIGNMENT = "ASSIGNMENT"
    DEADLINE_URGENT = "DEADLINE_URGENT"
    DEADLINE_OVERDUE = "DEADLINE_OVERDUE"
    SYSTEM = "SYSTEM"


class Channel(Enum):
    IN_APP = "IN_APP"
    EMAIL = "EMAIL"
    CHAT = "CHAT"
    SMS = "SMS"
    PUSH = "PUSH"


class Priority(Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class DeliveryStatus(Enum):
    QUEUED = "QUEUED"
    SENT = "SENT"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class SkipReason(Enum):
    QUIET_HOURS = "quiet_hours"
    MISSING_EMAIL = "missing_email"
    MISSING_CHAT_ID = "missing_chat_id"
    MISSING_PHONE = "missing_phone"
    PUSH_NOT_SUPPORTED = "push_not_supported"


class FailureReason(Enum):
    SEND_FAILED = "send_failed"
    SEND_TIMEOUT = "send_timeout"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@notifications.entity(part_of="Notification")
class NotificationDelivery:
    """The outcome of one channel for one notification."""

    channel: String(choices=Channel, required=True)
    status: String(choices=DeliveryStatus, required=True)
    recipient: String(max_length=255)  # email address, chat id, phone or user id
    error: String(max_length=100)
    sent_at: DateTime()
    recorded_at: DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifications.aggregate
class Notification:
    """A notification about one domain event for one user.

    Immutable once created; deliveries are only ever appended.
    """

    user_id: Identifier(required=True)
    item_id: Identifier()  # originating correspondence item, if any
    actor_id: Identifier()  # acting user, None for system events
    event_type: String(choices=EventType, required=True)
    title: String(required=True, max_length=500)
    body: Text()
    priority: String(choices=Priority, default=Priority.NORMAL.value)
    dedupe_key: String(max_length=500)
    context_data: Text()  # JSON — caller-supplied metadata
    deliveries: HasMany(NotificationDelivery)
    created_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        user_id,
        event_type,
        title,
        priority,
        body=None,
        item_id=None,
        actor_id=None,
        dedupe_key=None,
        context=None,
        created_at=None,
    ):
        now = created_at or datetime.now(UTC)

        notification = cls(
            user_id=user_id,
            item_id=item_id,
            actor_id=actor_id,
            event_type=event_type,
            title=title,
            body=body,
            priority=priority,
            dedupe_key=dedupe_key,
            context_data=json.dumps(context) if context else None,
            created_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                user_id=str(user_id),
                item_id=str(item_id) if item_id else None,
                actor_id=str(actor_id) if actor_id else None,
                event_type=event_type,
                title=title,
                priority=priority,
                dedupe_key=dedupe_key,
                created_at=now,
            )
        )

        return notification

    # -------------------------------------------------------------------
    # Deliveries
    # -------------------------------------------------------------------
    def record_delivery(self, channel, status, recipient=None, error=None, recorded_at=None):
        """Append the outcome of one channel."""
        if any(d.channel == channel for d in self.deliveries):
            raise ValidationError({"deliveries": [f"Delivery for {channel} already recorded"]})

        now = recorded_at or datetime.now(UTC)
        sent_at = now if status == DeliveryStatus.SENT.value else None

        delivery = NotificationDelivery(
            channel=channel,
            status=status,
            recipient=recipient,
            error=error,
            sent_at=sent_at,
            recorded_at=now,
        )
        self.add_deliveries(delivery)

        self.raise_(
            DeliveryRecorded(
                notification_id=str(self.id),
                delivery_id=str(delivery.id),
                user_id=str(self.user_id),
                event_type=self.event_type,
                channel=channel,
                status=status,
                recipient=recipient,
                error=error,
                sent_at=sent_at,
                recorded_at=now,
            )
        )

        return delivery

    # -------------------------------------------------------------------
    # Query helpers
    # -------------------------------------------------------------------
    def delivery_for(self, channel):
        return next((d for d in self.deliveries if d.channel == channel), None)

    @property
    def context(self):
        return json.loads(self.context_data) if self.context_data else {}
