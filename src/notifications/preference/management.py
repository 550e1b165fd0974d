"""UpdateNotificationSettings command + handler — the settings write path.

A partial document is merged onto the user's current effective settings,
validated, and then written to three places:

1. the NotificationPreference document (created on first save),
2. the legacy flat columns on the UserProfile,
3. the user's NotificationSubscription rows (deleted and recreated).
"""

import json

import structlog
from notifications.directory.user_profile import ROLE_VALUES, UserProfile
from notifications.domain import notifications
from notifications.notification.capabilities import get_capabilities
from notifications.preference.preference import NotificationPreference
from notifications.preference.resolver import load_preference, load_profile, resolve_settings
from notifications.preference.settings import (
    NotificationSettings,
    SettingOrigin,
    SettingsOverride,
    SubscriptionRule,
    SubscriptionScope,
    merge_settings,
)
from notifications.subscription.subscription import NotificationSubscription
from protean.exceptions import ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from pydantic import ValidationError as PydanticValidationError

logger = structlog.get_logger(__name__)


@notifications.command(part_of="NotificationPreference")
class UpdateNotificationSettings:
    """Save (part of) a user's notification settings."""

    user_id: Identifier(required=True)
    settings: Text(required=True)  # JSON, partial settings document


def parse_override(raw: str) -> SettingsOverride:
    """Parse an update request, raising ValidationError on bad input."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError({"settings": ["Settings must be a JSON document"]}) from None
    if not isinstance(data, dict):
        raise ValidationError({"settings": ["Settings must be a JSON object"]})

    try:
        return SettingsOverride.model_validate(data)
    except PydanticValidationError as exc:
        errors = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "settings"
            errors.setdefault(field, []).append(error["msg"])
        raise ValidationError(errors) from exc


def normalize_subscriptions(rules) -> tuple[SubscriptionRule, ...]:
    """Trim values and drop rules that can never match."""
    normalized = []
    for rule in rules:
        value = (rule.value or "").strip() or None
        if rule.scope != SubscriptionScope.ALL:
            if not value:
                continue
            if rule.scope == SubscriptionScope.ROLE and value not in ROLE_VALUES:
                continue
        normalized.append(SubscriptionRule(event=rule.event, scope=rule.scope, value=value))
    return tuple(normalized)


def validate_settings(settings: NotificationSettings):
    errors = {}

    if settings.quiet_hours_enabled and settings.quiet_hours_start == settings.quiet_hours_end:
        errors["quiet_hours_end"] = ["Quiet hours start and end must differ"]

    for row in settings.matrix:
        if not any(row.channels.model_dump().values()):
            errors.setdefault("matrix", []).append(f"{row.event.value} must enable at least one channel")

    if errors:
        raise ValidationError(errors)


def _replace_subscriptions(user_id: str, rules):
    repo = current_domain.repository_for(NotificationSubscription)
    for existing in repo._dao.query.filter(user_id=user_id).limit(None).all().items:
        repo._dao.delete(existing)
    for rule in rules:
        subscription = NotificationSubscription.create(
            user_id=user_id,
            event=rule.event,
            scope=rule.scope.value,
            value=rule.value,
        )
        repo.add(subscription)


@notifications.command_handler(part_of=NotificationPreference)
class ManageSettingsHandler:
    @handle(UpdateNotificationSettings)
    def update_settings(self, command: UpdateNotificationSettings):
        user_id = str(command.user_id)
        override = parse_override(command.settings)

        resolved = merge_settings(resolve_settings(user_id), override, SettingOrigin.STORED)
        settings = resolved.settings.model_copy(
            update={"subscriptions": normalize_subscriptions(resolved.settings.subscriptions)}
        )
        validate_settings(settings)
        document = settings.to_document()

        # Preference document
        pref_repo = current_domain.repository_for(NotificationPreference)
        preference = load_preference(user_id)
        if preference is None:
            preference = NotificationPreference.create(user_id=user_id, document=document)
        else:
            preference.replace_settings(document)
        pref_repo.add(preference)

        # Legacy columns
        profile = load_profile(user_id)
        if profile is not None:
            profile.sync_legacy_flags(settings)
            current_domain.repository_for(UserProfile).add(profile)
        else:
            logger.warning("No profile to mirror notification settings onto", user_id=user_id)

        # Subscription rows
        if get_capabilities().subscriptions:
            _replace_subscriptions(user_id, settings.subscriptions)
        else:
            logger.warning(
                "Subscriptions unavailable, rules kept in the settings document only",
                user_id=user_id,
                rules=len(settings.subscriptions),
            )

        logger.info(
            "Notification settings updated",
            user_id=user_id,
            fields=sorted(override.model_fields_set),
            subscriptions=len(settings.subscriptions),
        )

        return document
