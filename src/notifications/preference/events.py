"""Domain events for the NotificationPreference aggregate."""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, Integer


@notifications.event(part_of="NotificationPreference")
class PreferencesCreated:
    """A user's structured notification settings document was stored for the first time."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    created_at: DateTime(required=True)


@notifications.event(part_of="NotificationPreference")
class PreferencesUpdated:
    """A user's notification settings document was replaced."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    subscription_count: Integer(required=True)
    updated_at: DateTime(required=True)
