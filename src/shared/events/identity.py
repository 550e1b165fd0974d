"""Cross-domain event contracts for Identity domain events.

These classes define the event shape for consumption by other domains
(the Notifications domain keeps a contact profile per user). They are
registered as external events via domain.register_external_event()
with matching __type__ strings so Protean's stream deserialization
works correctly.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, String, Text


class UserRegistered(BaseEvent):
    """A new staff account was created."""

    __version__ = 1

    user_id = Identifier(required=True)
    name = String(max_length=255)
    role = String(required=True, max_length=20)
    email = String(max_length=254)
    phone = String(max_length=32)
    chat_id = String(max_length=64)
    registered_at = DateTime(required=True)


class UserProfileChanged(BaseEvent):
    """A user's role or contact details changed.

    Contact fields carry the new value and a missing field means it did not
    change. Removed contacts are listed by field name in `cleared`.
    """

    __version__ = 1

    user_id = Identifier(required=True)
    name = String(max_length=255)
    role = String(max_length=20)
    email = String(max_length=254)
    phone = String(max_length=32)
    chat_id = String(max_length=64)
    cleared = Text()  # JSON list of removed contact fields: "email", "phone", "chat_id"
    changed_at = DateTime(required=True)
