"""NotificationPreference aggregate (CQRS) — the stored settings document.

One row per user, created lazily the first time the user saves settings.
The document is kept as JSON text and is read back through the preference
resolver, which tolerates documents written by older versions (missing
fields, unknown fields) and falls back to legacy columns when a document is
unusable.
"""

import json
from datetime import UTC, datetime

from notifications.domain import notifications
from notifications.preference.events import PreferencesCreated, PreferencesUpdated
from protean.fields import DateTime, Identifier, Text


@notifications.aggregate
class NotificationPreference:
    """A user's structured notification settings document."""

    user_id: Identifier(required=True, unique=True)
    settings: Text()  # JSON settings document

    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, document: dict):
        now = datetime.now(UTC)

        preference = cls(
            user_id=user_id,
            settings=json.dumps(document),
            created_at=now,
            updated_at=now,
        )

        preference.raise_(
            PreferencesCreated(
                preference_id=str(preference.id),
                user_id=str(user_id),
                created_at=now,
            )
        )

        return preference

    # -------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------
    def replace_settings(self, document: dict):
        now = datetime.now(UTC)
        self.settings = json.dumps(document)
        self.updated_at = now

        self.raise_(
            PreferencesUpdated(
                preference_id=str(self.id),
                user_id=str(self.user_id),
                subscription_count=len(document.get("subscriptions") or []),
                updated_at=now,
            )
        )
