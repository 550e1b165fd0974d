"""System template — announcements from administrators."""

from notifications.notification.notification import EventType


class SystemTemplate:
    event_type = EventType.SYSTEM

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": context.get("title") or "System announcement",
            "body": context.get("body"),
        }
