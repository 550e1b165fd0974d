"""Deadline templates — approaching, overdue and escalated deadlines."""

from notifications.notification.notification import EventType


def _deadline_body(context: dict, label: str, days: int) -> str:
    return (
        f"Organization: {context.get('organization', 'N/A')}\n"
        f"Deadline: {context.get('deadline', 'N/A')}\n"
        f"{label}: {days} day(s)"
    )


class DeadlineUrgentTemplate:
    event_type = EventType.DEADLINE_URGENT

    @staticmethod
    def render(context: dict) -> dict:
        number = context.get("number", "N/A")
        return {
            "title": f"Urgent deadline for item #{number}",
            "body": _deadline_body(context, "Days left", abs(int(context.get("days_left", 0)))),
        }


class DeadlineOverdueTemplate:
    event_type = EventType.DEADLINE_OVERDUE

    @staticmethod
    def render(context: dict) -> dict:
        number = context.get("number", "N/A")
        return {
            "title": f"Deadline missed for item #{number}",
            "body": _deadline_body(context, "Overdue by", abs(int(context.get("days_overdue", 0)))),
        }


class DeadlineEscalationTemplate:
    """Sent to managers once an item has been overdue for several days."""

    event_type = EventType.DEADLINE_OVERDUE

    @staticmethod
    def render(context: dict) -> dict:
        number = context.get("number", "N/A")
        return {
            "title": f"Escalation: item #{number} is overdue",
            "body": _deadline_body(context, "Overdue by", abs(int(context.get("days_overdue", 0)))),
        }
