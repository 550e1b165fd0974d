"""Template registry — maps template names to template classes.

Each template declares the event type it notifies about and renders a
title and optional body from event context data. Every event type has a
template under its own name; extra templates (escalations) reuse an event
type under a different name.
"""

from notifications.notification.notification import EventType
from notifications.templates.assignment import AssignmentTemplate
from notifications.templates.comment import CommentTemplate
from notifications.templates.deadline import (
    DeadlineEscalationTemplate,
    DeadlineOverdueTemplate,
    DeadlineUrgentTemplate,
)
from notifications.templates.new_item import NewItemTemplate
from notifications.templates.status_change import StatusChangeTemplate
from notifications.templates.system import SystemTemplate

DEADLINE_ESCALATION = "DEADLINE_ESCALATION"

TEMPLATE_REGISTRY: dict[str, type] = {
    EventType.NEW_ITEM.value: NewItemTemplate,
    EventType.STATUS_CHANGE.value: StatusChangeTemplate,
    EventType.COMMENT.value: CommentTemplate,
    EventType.ASSIGNMENT.value: AssignmentTemplate,
    EventType.DEADLINE_URGENT.value: DeadlineUrgentTemplate,
    EventType.DEADLINE_OVERDUE.value: DeadlineOverdueTemplate,
    EventType.SYSTEM.value: SystemTemplate,
    DEADLINE_ESCALATION: DeadlineEscalationTemplate,
}

_missing = {e.value for e in EventType} - set(TEMPLATE_REGISTRY)
if _missing:
    raise RuntimeError(f"No template for event types: {sorted(_missing)}")


def get_template(name: str):
    """Look up a template class by event type value or template name."""
    template_cls = TEMPLATE_REGISTRY.get(name)
    if template_cls is None:
        raise ValueError(f"No template registered for: {name}")
    return template_cls
