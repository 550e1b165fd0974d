"""New item template — a correspondence item was registered."""

from notifications.notification.notification import EventType


class NewItemTemplate:
    event_type = EventType.NEW_ITEM

    @staticmethod
    def render(context: dict) -> dict:
        number = context.get("number", "N/A")
        organization = context.get("organization")
        return {
            "title": f"New item #{number}",
            "body": f"From: {organization}" if organization else None,
        }
