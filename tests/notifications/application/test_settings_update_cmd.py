"""Application tests for the UpdateNotificationSettings command."""

import json
from unittest.mock import patch

import pytest
from notifications.directory.user_profile import UserProfile
from notifications.notification.capabilities import StorageCapabilities
from notifications.preference.management import (
    UpdateNotificationSettings,
    normalize_subscriptions,
    parse_override,
)
from notifications.preference.preference import NotificationPreference
from notifications.preference.resolver import load_preference, resolve_settings
from notifications.preference.settings import SettingOrigin, SubscriptionRule, SubscriptionScope
from notifications.subscription.subscription import NotificationSubscription
from protean import current_domain
from protean.exceptions import ValidationError


def _update(user_id, settings):
    return current_domain.process(
        UpdateNotificationSettings(user_id=user_id, settings=json.dumps(settings)),
        asynchronous=False,
    )


def _subscriptions(user_id):
    repo = current_domain.repository_for(NotificationSubscription)
    return repo._dao.query.filter(user_id=user_id).limit(None).all().items


def _profile(user_id):
    return current_domain.repository_for(UserProfile)._dao.query.filter(user_id=user_id).all().items[0]


class TestUpdateSettings:
    def test_first_save_creates_preference(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id)

        document = _update(user_id, {"sms_notifications": False})

        assert document["sms_notifications"] is False
        preference = load_preference(user_id)
        assert json.loads(preference.settings)["sms_notifications"] is False

    def test_returns_complete_document(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id)

        document = _update(user_id, {"quiet_mode": "IMPORTANT_ONLY"})

        assert document["email_notifications"] is True
        assert len(document["matrix"]) == 7

    def test_partial_updates_accumulate(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id)

        _update(user_id, {"sms_notifications": False})
        _update(user_id, {"chat_notifications": False})

        settings = resolve_settings(user_id)
        assert settings.settings.sms_notifications is False
        assert settings.settings.chat_notifications is False
        assert settings.origin_of("sms_notifications") == SettingOrigin.STORED

    def test_single_preference_per_user(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id)

        _update(user_id, {"sms_notifications": False})
        _update(user_id, {"sms_notifications": True})

        repo = current_domain.repository_for(NotificationPreference)
        assert len(repo._dao.query.filter(user_id=user_id).all().items) == 1

    def test_legacy_columns_mirrored(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id)

        _update(
            user_id,
            {
                "email_notifications": False,
                "quiet_hours_enabled": True,
                "quiet_hours_start": "23:00",
                "quiet_hours_end": "06:30",
                "email_digest": "WEEKLY",
            },
        )

        profile = _profile(user_id)
        assert profile.notify_email is False
        assert profile.quiet_hours_start == "23:00"
        assert profile.quiet_hours_end == "06:30"
        assert profile.digest_frequency == "WEEKLY"

    def test_user_without_profile_still_saved(self, unique_id):
        user_id = unique_id()
        _update(user_id, {"notify_on_system": False})
        assert load_preference(user_id) is not None

    def test_starts_from_legacy_settings(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id, notify_sms=False)

        document = _update(user_id, {"chat_notifications": False})

        assert document["sms_notifications"] is False


class TestSubscriptionRows:
    def test_rows_replaced(self, register_user, unique_id):
        user_id, followed = unique_id(), unique_id()
        register_user(user_id)

        _update(user_id, {"subscriptions": [{"event": "ALL", "scope": "ROLE", "value": "ADMIN"}]})
        _update(user_id, {"subscriptions": [{"event": "COMMENT", "scope": "USER", "value": followed}]})

        rows = _subscriptions(user_id)
        assert len(rows) == 1
        assert (rows[0].event, rows[0].scope, rows[0].value) == ("COMMENT", "USER", followed)

    def test_unrelated_update_keeps_rows(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id)

        _update(user_id, {"subscriptions": [{"event": "SYSTEM", "scope": "ALL"}]})
        _update(user_id, {"sound_notifications": False})

        assert len(_subscriptions(user_id)) == 1

    def test_every_existing_row_removed(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id)
        repo = current_domain.repository_for(NotificationSubscription)
        for index in range(120):
            repo.add(NotificationSubscription.create(user_id=user_id, event="ALL", scope="USER", value=f"u-{index}"))

        _update(user_id, {"subscriptions": [{"event": "SYSTEM", "scope": "ALL"}]})

        rows = _subscriptions(user_id)
        assert [(row.event, row.scope) for row in rows] == [("SYSTEM", "ALL")]

    def test_invalid_rules_dropped(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id)

        document = _update(
            user_id,
            {
                "subscriptions": [
                    {"event": "ALL", "scope": "ROLE", "value": "PIRATE"},
                    {"event": "COMMENT", "scope": "USER", "value": "   "},
                    {"event": "NEW_ITEM", "scope": "ROLE", "value": " MANAGER "},
                ]
            },
        )

        assert document["subscriptions"] == [{"event": "NEW_ITEM", "scope": "ROLE", "value": "MANAGER"}]
        assert [row.value for row in _subscriptions(user_id)] == ["MANAGER"]

    def test_subscription_table_unavailable(self, register_user, unique_id):
        user_id = unique_id()
        register_user(user_id)

        with patch(
            "notifications.preference.management.get_capabilities",
            return_value=StorageCapabilities(subscriptions=False),
        ):
            document = _update(user_id, {"subscriptions": [{"event": "ALL", "scope": "ALL"}]})

        assert len(document["subscriptions"]) == 1
        assert _subscriptions(user_id) == []


EQUAL_QUIET_HOURS = {"quiet_hours_enabled": True, "quiet_hours_start": "08:00", "quiet_hours_end": "08:00"}


class TestValidation:
    def test_not_json(self, unique_id):
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                UpdateNotificationSettings(user_id=unique_id(), settings="{not json"),
                asynchronous=False,
            )
        assert "settings" in exc.value.messages

    def test_not_an_object(self, unique_id):
        with pytest.raises(ValidationError) as exc:
            _update(unique_id(), ["email_notifications"])
        assert "settings" in exc.value.messages

    def test_bad_time(self, unique_id):
        with pytest.raises(ValidationError) as exc:
            _update(unique_id(), {"quiet_hours_start": "7pm"})
        assert "quiet_hours_start" in exc.value.messages

    def test_equal_quiet_hours_rejected(self, unique_id):
        with pytest.raises(ValidationError) as exc:
            _update(unique_id(), EQUAL_QUIET_HOURS)
        assert "quiet_hours_end" in exc.value.messages

    def test_matrix_row_without_channels_rejected(self, unique_id):
        channels = {"in_app": False, "email": False, "chat": False, "sms": False, "push": False}
        with pytest.raises(ValidationError) as exc:
            _update(unique_id(), {"matrix": [{"event": "COMMENT", "channels": channels}]})
        assert "matrix" in exc.value.messages

    def test_nothing_saved_on_error(self, unique_id):
        user_id = unique_id()
        with pytest.raises(ValidationError):
            _update(user_id, EQUAL_QUIET_HOURS)
        assert load_preference(user_id) is None


class TestHelpers:
    def test_parse_override_keeps_only_given_fields(self):
        override = parse_override('{"email_notifications": false, "colour": "teal"}')
        assert override.model_fields_set == {"email_notifications"}

    def test_normalize_keeps_all_scope_without_value(self):
        rules = normalize_subscriptions([SubscriptionRule(event="ALL", scope=SubscriptionScope.ALL, value="  ")])
        assert rules == (SubscriptionRule(event="ALL", scope=SubscriptionScope.ALL, value=None),)
