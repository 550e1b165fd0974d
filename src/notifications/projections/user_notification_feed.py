"""UserNotificationFeed — per-user notification history for the in-app inbox."""

from notifications.domain import notifications
from notifications.notification.events import DeliveryRecorded, NotificationCreated
from notifications.notification.notification import DeliveryStatus, Notification
from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain


@notifications.projection
class UserNotificationFeed:
    notification_id: Identifier(identifier=True, required=True)
    user_id: Identifier(required=True)
    item_id: Identifier()
    actor_id: Identifier()
    event_type: String(required=True)
    title: String(required=True, max_length=500)
    priority: String(required=True)
    sent_channels: String(max_length=100, default="")  # comma-separated channels delivered
    delivery_count: Integer(default=0)
    created_at: DateTime()
    updated_at: DateTime()


@notifications.projector(projector_for=UserNotificationFeed, aggregates=[Notification])
class UserNotificationFeedProjector:
    @on(NotificationCreated)
    def on_notification_created(self, event):
        current_domain.repository_for(UserNotificationFeed).add(
            UserNotificationFeed(
                notification_id=event.notification_id,
                user_id=event.user_id,
                item_id=event.item_id,
                actor_id=event.actor_id,
                event_type=event.event_type,
                title=event.title,
                priority=event.priority,
                created_at=event.created_at,
                updated_at=event.created_at,
            )
        )

    @on(DeliveryRecorded)
    def on_delivery_recorded(self, event):
        repo = current_domain.repository_for(UserNotificationFeed)
        try:
            entry = repo.get(event.notification_id)
        except ObjectNotFoundError:
            return

        entry.delivery_count = (entry.delivery_count or 0) + 1
        if event.status == DeliveryStatus.SENT.value:
            channels = [c for c in (entry.sent_channels or "").split(",") if c]
            channels.append(event.channel)
            entry.sent_channels = ",".join(channels)
        entry.updated_at = event.recorded_at
        repo.add(entry)
