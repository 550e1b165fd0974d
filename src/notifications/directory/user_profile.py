"""UserProfile aggregate (CQRS) — the notification engine's view of a user.

Holds what dispatch needs to reach a person: role (for subscription
matching), contact details per channel, and the legacy flat notification
columns that predate the structured settings document. Kept in sync from
Identity events.
"""

from datetime import UTC, datetime
from enum import Enum

from notifications.domain import notifications
from notifications.notification.notification import Channel
from notifications.preference.settings import DigestFrequency
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String


class Role(Enum):
    SUPERADMIN = "SUPERADMIN"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    AUDITOR = "AUDITOR"
    EMPLOYEE = "EMPLOYEE"
    VIEWER = "VIEWER"


ROLE_VALUES = frozenset(role.value for role in Role)


@notifications.aggregate
class UserProfile:
    """Contact details and legacy notification flags of one user."""

    user_id: Identifier(required=True, unique=True)
    name: String(max_length=255)
    role: String(choices=Role, default=Role.EMPLOYEE.value)

    # Contact details
    email: String(max_length=254)
    phone: String(max_length=32)
    chat_id: String(max_length=64)

    # Legacy notification columns
    notify_in_app: Boolean(default=True)
    notify_email: Boolean(default=True)
    notify_chat: Boolean(default=True)
    notify_sms: Boolean(default=True)
    quiet_hours_start: String(max_length=5)  # "22:00" format
    quiet_hours_end: String(max_length=5)  # "08:00" format
    digest_frequency: String(choices=DigestFrequency, default=DigestFrequency.INSTANT.value)

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(cls, user_id, role=Role.EMPLOYEE.value, name=None, email=None, phone=None, chat_id=None):
        if role not in ROLE_VALUES:
            raise ValidationError({"role": [f"Unknown role: {role}"]})

        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            name=name,
            role=role,
            email=email or None,
            phone=phone or None,
            chat_id=chat_id or None,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------
    def update_profile(self, role=None, name=None, email=None, phone=None, chat_id=None):
        """Update profile fields. Pass None to keep unchanged, "" to clear a contact."""
        if role is not None:
            if role not in ROLE_VALUES:
                raise ValidationError({"role": [f"Unknown role: {role}"]})
            self.role = role
        if name is not None:
            self.name = name
        if email is not None:
            self.email = email or None
        if phone is not None:
            self.phone = phone or None
        if chat_id is not None:
            self.chat_id = chat_id or None
        self.updated_at = datetime.now(UTC)

    def sync_legacy_flags(self, settings):
        """Mirror structured settings onto the legacy columns."""
        self.notify_in_app = settings.in_app_notifications
        self.notify_email = settings.email_notifications
        self.notify_chat = settings.chat_notifications
        self.notify_sms = settings.sms_notifications
        self.quiet_hours_start = settings.quiet_hours_start if settings.quiet_hours_enabled else None
        self.quiet_hours_end = settings.quiet_hours_end if settings.quiet_hours_enabled else None
        self.digest_frequency = settings.email_digest.value
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Query helpers
    # -------------------------------------------------------------------
    def address_for(self, channel: Channel):
        """Channel-specific recipient address, None when not on file."""
        if channel == Channel.IN_APP:
            return str(self.user_id)
        if channel == Channel.EMAIL:
            return self.email
        if channel == Channel.CHAT:
            return self.chat_id
        if channel == Channel.SMS:
            return self.phone
        return None
