"""DeliveryStats — daily delivery counts by channel and status."""

from notifications.domain import notifications
from notifications.notification.events import DeliveryRecorded
from notifications.notification.notification import Notification
from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Integer, String
from protean.utils.globals import current_domain


@notifications.projection
class DeliveryStats:
    stat_key: String(identifier=True, required=True)  # "YYYY-MM-DD:channel:status"
    date: String(required=True, max_length=10)
    channel: String(required=True)
    status: String(required=True)
    count: Integer(default=0)
    updated_at: DateTime()


@notifications.projector(projector_for=DeliveryStats, aggregates=[Notification])
class DeliveryStatsProjector:
    @on(DeliveryRecorded)
    def on_delivery_recorded(self, event):
        repo = current_domain.repository_for(DeliveryStats)

        date_str = event.recorded_at.strftime("%Y-%m-%d")
        stat_key = f"{date_str}:{event.channel}:{event.status}"

        try:
            stat = repo.get(stat_key)
            stat.count = stat.count + 1
            stat.updated_at = event.recorded_at
        except ObjectNotFoundError:
            stat = DeliveryStats(
                stat_key=stat_key,
                date=date_str,
                channel=event.channel,
                status=event.status,
                count=1,
                updated_at=event.recorded_at,
            )

        repo.add(stat)
