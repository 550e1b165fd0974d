"""Shared BDD fixtures and step definitions for the Notifications domain."""

import pytest
from notifications.directory.user_profile import UserProfile
from notifications.notification.notification import Notification
from notifications.preference.preference import NotificationPreference
from notifications.preference.resolver import load_preference
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def users(unique_id):
    """Scenario names → generated user ids, so scenarios never share data."""

    class _Users(dict):
        def __missing__(self, name):
            self[name] = unique_id(name)
            return self[name]

    return _Users()


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def _notifications_for(user_id):
    repo = current_domain.repository_for(Notification)
    return repo._dao.query.filter(user_id=user_id).all().items


def _only_notification(user_id):
    notifications = _notifications_for(user_id)
    assert len(notifications) == 1
    return notifications[0]


# ---------------------------------------------------------------------------
# Given steps — users
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a user "{name:w}" with an email address'))
def user_with_email(users, register_user, name):
    register_user(users[name], email=f"{users[name]}@example.com")


@given(parsers.cfparse('a user "{name:w}" without contact details'))
def user_without_contacts(users, register_user, name):
    register_user(users[name])


@given(parsers.cfparse('a user "{name:w}" with role "{role}"'))
def user_with_role(users, register_user, name, role):
    register_user(users[name], role=role)


@given(parsers.cfparse('"{name:w}" has turned off "{setting}"'))
def turn_off(users, store_settings, name, setting):
    store_settings(users[name], {setting: False})


@given(parsers.cfparse('"{name:w}" has quiet hours from "{start}" to "{end}"'))
def quiet_hours(users, store_settings, name, start, end):
    store_settings(users[name], {"quiet_hours_enabled": True, "quiet_hours_start": start, "quiet_hours_end": end})


@given(parsers.cfparse('"{name:w}" has important-only quiet hours from "{start}" to "{end}"'))
def quiet_hours_important_only(users, store_settings, name, start, end):
    store_settings(
        users[name],
        {
            "quiet_hours_enabled": True,
            "quiet_hours_start": start,
            "quiet_hours_end": end,
            "quiet_mode": "IMPORTANT_ONLY",
        },
    )


# ---------------------------------------------------------------------------
# Then steps — notifications and deliveries
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{name:w}" has {count:d} notification'))
@then(parsers.cfparse('"{name:w}" has {count:d} notifications'))
def notification_count(users, name, count):
    assert len(_notifications_for(users[name])) == count


@then(parsers.cfparse('the "{channel:w}" delivery for "{name:w}" is "{status:w}"'))
def delivery_status(users, channel, name, status):
    delivery = _only_notification(users[name]).delivery_for(channel)
    assert delivery is not None
    assert delivery.status == status


@then(parsers.cfparse('the "{channel:w}" delivery for "{name:w}" is "{status:w}" with reason "{reason}"'))
def delivery_status_with_reason(users, channel, name, status, reason):
    delivery = _only_notification(users[name]).delivery_for(channel)
    assert delivery.status == status
    assert delivery.error == reason


@then(parsers.cfparse('"{name:w}" has no "{channel:w}" delivery'))
def no_delivery(users, name, channel):
    assert _only_notification(users[name]).delivery_for(channel) is None


# ---------------------------------------------------------------------------
# Then steps — settings
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the update is rejected for "{field}"'))
def update_rejected(error, field):
    assert error["exc"] is not None
    assert field in error["exc"].messages


@then(parsers.cfparse('no settings are stored for "{name:w}"'))
def nothing_stored(users, name):
    assert load_preference(users[name]) is None


@then(parsers.cfparse('the legacy "{column}" flag for "{name:w}" is off'))
def legacy_flag_off(users, column, name):
    repo = current_domain.repository_for(UserProfile)
    profile = repo._dao.query.filter(user_id=users[name]).all().items[0]
    assert getattr(profile, column) is False


@then(parsers.cfparse('"{name:w}" has exactly one settings document'))
def one_document(users, name):
    repo = current_domain.repository_for(NotificationPreference)
    assert len(repo._dao.query.filter(user_id=users[name]).all().items) == 1
