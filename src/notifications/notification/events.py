"""Domain events for the Notification aggregate."""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, String


@notifications.event(part_of="Notification")
class NotificationCreated:
    """A notification was created for a recipient."""

    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    item_id: Identifier()
    actor_id: Identifier()
    event_type: String(required=True)
    title: String(required=True)
    priority: String(required=True)
    dedupe_key: String()
    created_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class DeliveryRecorded:
    """The outcome of one channel was appended to a notification."""

    __version__ = 1

    notification_id: Identifier(required=True)
    delivery_id: Identifier(required=True)
    user_id: Identifier(required=True)
    event_type: String(required=True)
    channel: String(required=True)
    status: String(required=True)
    recipient: String()
    error: String()
    sent_at: DateTime()
    recorded_at: DateTime(required=True)
