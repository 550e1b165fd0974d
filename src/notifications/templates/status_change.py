"""Status change template — an item moved to another workflow status."""

from notifications.notification.notification import EventType


def _label(status) -> str:
    return str(status).replace("_", " ").capitalize() if status else "Unknown"


class StatusChangeTemplate:
    event_type = EventType.STATUS_CHANGE

    @staticmethod
    def render(context: dict) -> dict:
        number = context.get("number", "N/A")
        return {
            "title": f"Status of item #{number} updated",
            "body": f"{_label(context.get('old_status'))} -> {_label(context.get('new_status'))}",
        }
