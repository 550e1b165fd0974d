"""Preference resolver — effective notification settings for a user.

Resolution order:

1. The stored NotificationPreference document, merged onto the defaults.
2. If there is no document, or it cannot be parsed, the legacy columns on
   the UserProfile merged onto the defaults.
3. If there is no profile either, the defaults alone.

The result is never partial. A resolver instance caches per user and is
meant to live for a single dispatch.
"""

import json
import re

import structlog
from notifications.directory.user_profile import UserProfile
from notifications.preference.preference import NotificationPreference
from notifications.preference.settings import (
    DEFAULT_SETTINGS,
    TIME_PATTERN,
    ResolvedSettings,
    SettingOrigin,
    SettingsOverride,
    defaults,
    merge_settings,
)
from protean.utils.globals import current_domain
from pydantic import ValidationError as PydanticValidationError

logger = structlog.get_logger(__name__)


def parse_document(raw: str | None) -> SettingsOverride | None:
    """Parse a stored document; None when absent or malformed."""
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    try:
        return SettingsOverride.model_validate(data)
    except PydanticValidationError:
        return None


def _valid_time(value):
    return value if value and re.match(TIME_PATTERN, value) else None


def legacy_override(profile: UserProfile) -> SettingsOverride:
    """Settings expressible by the legacy flat columns of a profile."""
    start = _valid_time(profile.quiet_hours_start)
    end = _valid_time(profile.quiet_hours_end)
    return SettingsOverride(
        in_app_notifications=profile.notify_in_app,
        email_notifications=profile.notify_email,
        chat_notifications=profile.notify_chat,
        sms_notifications=profile.notify_sms,
        email_digest=profile.digest_frequency,
        quiet_hours_enabled=bool(start and end),
        quiet_hours_start=start or DEFAULT_SETTINGS.quiet_hours_start,
        quiet_hours_end=end or DEFAULT_SETTINGS.quiet_hours_end,
    )


def load_profile(user_id) -> UserProfile | None:
    repo = current_domain.repository_for(UserProfile)
    profiles = repo._dao.query.filter(user_id=str(user_id)).all().items
    return profiles[0] if profiles else None


def load_preference(user_id) -> NotificationPreference | None:
    repo = current_domain.repository_for(NotificationPreference)
    prefs = repo._dao.query.filter(user_id=str(user_id)).all().items
    return prefs[0] if prefs else None


class PreferenceResolver:
    """Resolves and caches effective settings for the lifetime of one dispatch."""

    def __init__(self):
        self._cache: dict[str, ResolvedSettings] = {}

    def resolve(self, user_id, profile: UserProfile | None = None) -> ResolvedSettings:
        key = str(user_id)
        if key not in self._cache:
            self._cache[key] = self._resolve(key, profile)
        return self._cache[key]

    def _resolve(self, user_id: str, profile: UserProfile | None) -> ResolvedSettings:
        preference = load_preference(user_id)
        if preference is not None and preference.settings:
            document = parse_document(preference.settings)
            if document is not None:
                return merge_settings(defaults(), document, SettingOrigin.STORED)
            logger.warning(
                "Stored notification settings are malformed, falling back to legacy columns",
                user_id=user_id,
                preference_id=str(preference.id),
            )

        if profile is None:
            profile = load_profile(user_id)
        if profile is None:
            return defaults()

        return merge_settings(defaults(), legacy_override(profile), SettingOrigin.LEGACY)


def resolve_settings(user_id) -> ResolvedSettings:
    """One-off resolution outside a dispatch (settings API, update command)."""
    return PreferenceResolver().resolve(user_id)
