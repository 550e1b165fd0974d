"""Comment template — someone commented on an item."""

from notifications.notification.notification import EventType

PREVIEW_LENGTH = 200


class CommentTemplate:
    event_type = EventType.COMMENT

    @staticmethod
    def render(context: dict) -> dict:
        number = context.get("number", "N/A")
        author = context.get("author_name") or "Someone"
        text = (context.get("text") or "").strip()
        if len(text) > PREVIEW_LENGTH:
            text = text[: PREVIEW_LENGTH - 3].rstrip() + "..."
        return {
            "title": f"{author} commented on item #{number}",
            "body": text or None,
        }
