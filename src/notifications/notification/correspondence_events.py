"""Inbound cross-domain event handler — Notifications reacts to Correspondence events.

Each event is rendered through its template and handed to the dispatcher
with the recipients the publishing side computed. The acting user is never
notified about their own action.
"""

import json

import structlog
from notifications.domain import notifications
from notifications.notification.capabilities import custom_setting
from notifications.notification.dispatch import dispatch_notification
from notifications.notification.notification import EventType, Notification
from notifications.templates import DEADLINE_ESCALATION, get_template
from protean.utils.mixins import handle
from shared.events.correspondence import (
    CommentPosted,
    DeadlineApproaching,
    DeadlineOverdue,
    ItemAssigned,
    ItemCreated,
    ItemStatusChanged,
    SystemAnnouncement,
)

logger = structlog.get_logger(__name__)

DEFAULT_DEADLINE_REPEAT_MINUTES = 24 * 60

notifications.register_external_event(ItemCreated, "Correspondence.ItemCreated.v1")
notifications.register_external_event(ItemStatusChanged, "Correspondence.ItemStatusChanged.v1")
notifications.register_external_event(CommentPosted, "Correspondence.CommentPosted.v1")
notifications.register_external_event(ItemAssigned, "Correspondence.ItemAssigned.v1")
notifications.register_external_event(DeadlineApproaching, "Correspondence.DeadlineApproaching.v1")
notifications.register_external_event(DeadlineOverdue, "Correspondence.DeadlineOverdue.v1")
notifications.register_external_event(SystemAnnouncement, "Correspondence.SystemAnnouncement.v1")


def _user_ids(raw: str | None, exclude=None) -> list[str]:
    ids = json.loads(raw) if raw else []
    return [str(user_id) for user_id in ids if user_id and str(user_id) != str(exclude)]


def _notify(template_name: str, context: dict, **kwargs):
    template_cls = get_template(template_name)
    rendered = template_cls.render(context)
    return dispatch_notification(
        event_type=template_cls.event_type,
        title=rendered["title"],
        body=rendered.get("body"),
        context=context,
        **kwargs,
    )


def _deadline_repeat_minutes() -> int:
    return int(custom_setting("deadline_repeat_minutes", DEFAULT_DEADLINE_REPEAT_MINUTES))


@notifications.event_handler(part_of=Notification, stream_category="correspondence::item")
class CorrespondenceEventsHandler:
    """Turns correspondence activity into user notifications."""

    @handle(ItemCreated)
    def on_item_created(self, event: ItemCreated) -> None:
        _notify(
            EventType.NEW_ITEM.value,
            {"number": event.number, "organization": event.organization},
            item_id=str(event.item_id),
            actor_id=event.created_by,
            user_ids=_user_ids(event.watcher_ids, exclude=event.created_by),
        )

    @handle(ItemStatusChanged)
    def on_item_status_changed(self, event: ItemStatusChanged) -> None:
        _notify(
            EventType.STATUS_CHANGE.value,
            {"number": event.number, "old_status": event.old_status, "new_status": event.new_status},
            item_id=str(event.item_id),
            actor_id=event.changed_by,
            user_ids=_user_ids(event.watcher_ids, exclude=event.changed_by),
            dedupe_key=f"{EventType.STATUS_CHANGE.value}:{event.item_id}:{event.new_status}",
        )

    @handle(CommentPosted)
    def on_comment_posted(self, event: CommentPosted) -> None:
        _notify(
            EventType.COMMENT.value,
            {"number": event.number, "author_name": event.author_name, "text": event.text},
            item_id=str(event.item_id),
            actor_id=event.author_id,
            user_ids=_user_ids(event.watcher_ids, exclude=event.author_id),
            dedupe_key=f"{EventType.COMMENT.value}:{event.comment_id}",
        )

    @handle(ItemAssigned)
    def on_item_assigned(self, event: ItemAssigned) -> None:
        if event.assigned_by and str(event.owner_id) == str(event.assigned_by):
            logger.debug("Self-assignment, no notification", item_id=str(event.item_id))
            return

        _notify(
            EventType.ASSIGNMENT.value,
            {"number": event.number, "organization": event.organization},
            item_id=str(event.item_id),
            actor_id=event.assigned_by,
            user_ids=[str(event.owner_id)],
        )

    @handle(DeadlineApproaching)
    def on_deadline_approaching(self, event: DeadlineApproaching) -> None:
        if not event.owner_id:
            return

        _notify(
            EventType.DEADLINE_URGENT.value,
            {
                "number": event.number,
                "organization": event.organization,
                "deadline": event.deadline.isoformat(),
                "days_left": event.days_left,
            },
            item_id=str(event.item_id),
            user_ids=[str(event.owner_id)],
            dedupe_key=f"SLA:{EventType.DEADLINE_URGENT.value}:{event.item_id}:{event.checked_on.isoformat()}",
            dedupe_window_minutes=_deadline_repeat_minutes(),
        )

    @handle(DeadlineOverdue)
    def on_deadline_overdue(self, event: DeadlineOverdue) -> None:
        context = {
            "number": event.number,
            "organization": event.organization,
            "deadline": event.deadline.isoformat(),
            "days_overdue": event.days_overdue,
        }
        checked_on = event.checked_on.isoformat()

        if event.owner_id:
            _notify(
                EventType.DEADLINE_OVERDUE.value,
                context,
                item_id=str(event.item_id),
                user_ids=[str(event.owner_id)],
                dedupe_key=f"SLA:{EventType.DEADLINE_OVERDUE.value}:{event.item_id}:{checked_on}",
                dedupe_window_minutes=_deadline_repeat_minutes(),
            )

        managers = _user_ids(event.escalate_to)
        if managers:
            _notify(
                DEADLINE_ESCALATION,
                context,
                item_id=str(event.item_id),
                user_ids=managers,
                dedupe_key=f"SLA:ESCALATION:{event.item_id}:{checked_on}",
                dedupe_window_minutes=_deadline_repeat_minutes(),
                include_subscriptions=False,
            )

    @handle(SystemAnnouncement)
    def on_system_announcement(self, event: SystemAnnouncement) -> None:
        _notify(
            EventType.SYSTEM.value,
            {"title": event.title, "body": event.body},
            user_ids=_user_ids(event.user_ids),
            dedupe_key=f"{EventType.SYSTEM.value}:{event.announcement_id}",
        )
