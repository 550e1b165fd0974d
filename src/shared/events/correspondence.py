"""Cross-domain event contracts for Correspondence domain events.

The Correspondence domain tracks incoming and outgoing items (letters,
requests) through their workflow. Notifications consumes these events to
tell the people involved. Recipient lists are computed by the publishing
side and travel as JSON-encoded lists of user ids.
"""

from protean.core.event import BaseEvent
from protean.fields import Date, DateTime, Identifier, Integer, String, Text


class ItemCreated(BaseEvent):
    """A correspondence item was registered."""

    __version__ = 1

    item_id = Identifier(required=True)
    number = String(required=True, max_length=50)
    organization = String(max_length=255)
    created_by = Identifier()
    watcher_ids = Text()  # JSON list of user IDs
    created_at = DateTime(required=True)


class ItemStatusChanged(BaseEvent):
    """An item moved to another workflow status."""

    __version__ = 1

    item_id = Identifier(required=True)
    number = String(required=True, max_length=50)
    old_status = String(max_length=50)
    new_status = String(required=True, max_length=50)
    changed_by = Identifier()
    watcher_ids = Text()  # JSON list of user IDs watching for changes
    changed_at = DateTime(required=True)


class CommentPosted(BaseEvent):
    """A comment was added to an item."""

    __version__ = 1

    comment_id = Identifier(required=True)
    item_id = Identifier(required=True)
    number = String(required=True, max_length=50)
    author_id = Identifier()
    author_name = String(max_length=255)
    text = Text()
    watcher_ids = Text()  # JSON list of user IDs
    posted_at = DateTime(required=True)


class ItemAssigned(BaseEvent):
    """An item got a new responsible user."""

    __version__ = 1

    item_id = Identifier(required=True)
    number = String(required=True, max_length=50)
    organization = String(max_length=255)
    owner_id = Identifier(required=True)
    assigned_by = Identifier()
    assigned_at = DateTime(required=True)


class DeadlineApproaching(BaseEvent):
    """The SLA check found an item close to its deadline."""

    __version__ = 1

    item_id = Identifier(required=True)
    number = String(required=True, max_length=50)
    organization = String(max_length=255)
    owner_id = Identifier()
    deadline = Date(required=True)
    days_left = Integer(required=True)
    checked_on = Date(required=True)


class DeadlineOverdue(BaseEvent):
    """The SLA check found an item past its deadline."""

    __version__ = 1

    item_id = Identifier(required=True)
    number = String(required=True, max_length=50)
    organization = String(max_length=255)
    owner_id = Identifier()
    deadline = Date(required=True)
    days_overdue = Integer(required=True)
    escalate_to = Text()  # JSON list of manager user IDs, set once overdue long enough
    checked_on = Date(required=True)


class SystemAnnouncement(BaseEvent):
    """An administrator broadcast a message."""

    __version__ = 1

    announcement_id = Identifier(required=True)
    title = String(required=True, max_length=500)
    body = Text()
    user_ids = Text()  # JSON list of user IDs; empty means subscribers only
    announced_at = DateTime(required=True)
