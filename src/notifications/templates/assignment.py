"""Assignment template — an item was assigned to the recipient."""

from notifications.notification.notification import EventType


class AssignmentTemplate:
    event_type = EventType.ASSIGNMENT

    @staticmethod
    def render(context: dict) -> dict:
        number = context.get("number", "N/A")
        return {
            "title": f"Assigned item #{number}",
            "body": context.get("organization"),
        }
