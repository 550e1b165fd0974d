"""DeliveryLog — audit trail of every channel outcome."""

from notifications.domain import notifications
from notifications.notification.events import DeliveryRecorded
from notifications.notification.notification import Notification
from protean.core.projector import on
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain


@notifications.projection
class DeliveryLog:
    delivery_id: Identifier(identifier=True, required=True)
    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    event_type: String(required=True)
    channel: String(required=True)
    status: String(required=True)
    recipient: String(max_length=255)
    error: String(max_length=100)
    sent_at: DateTime()
    recorded_at: DateTime()


@notifications.projector(projector_for=DeliveryLog, aggregates=[Notification])
class DeliveryLogProjector:
    @on(DeliveryRecorded)
    def on_delivery_recorded(self, event):
        current_domain.repository_for(DeliveryLog).add(
            DeliveryLog(
                delivery_id=event.delivery_id,
                notification_id=event.notification_id,
                user_id=event.user_id,
                event_type=event.event_type,
                channel=event.channel,
                status=event.status,
                recipient=event.recipient,
                error=event.error,
                sent_at=event.sent_at,
                recorded_at=event.recorded_at,
            )
        )
