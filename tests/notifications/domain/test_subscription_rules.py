"""Tests for NotificationSubscription rules."""

import pytest
from notifications.subscription.subscription import NotificationSubscription
from protean.exceptions import ValidationError


class TestCreate:
    def test_all_scope_needs_no_value(self):
        rule = NotificationSubscription.create(user_id="u1", event="ALL", scope="ALL")
        assert rule.value is None
        assert rule.created_at is not None

    def test_unknown_event_rejected(self):
        with pytest.raises(ValidationError) as exc:
            NotificationSubscription.create(user_id="u1", event="LUNCH", scope="ALL")
        assert "event" in exc.value.messages

    def test_role_scope_requires_value(self):
        with pytest.raises(ValidationError) as exc:
            NotificationSubscription.create(user_id="u1", event="COMMENT", scope="ROLE")
        assert "value" in exc.value.messages

    def test_unknown_scope_rejected(self):
        with pytest.raises(ValidationError):
            NotificationSubscription.create(user_id="u1", event="COMMENT", scope="TEAM", value="x")


class TestMatches:
    def test_all_scope_matches_system_events(self):
        rule = NotificationSubscription.create(user_id="u1", event="SYSTEM", scope="ALL")
        assert rule.matches(None, None)

    def test_role_scope_matches_actor_role(self):
        rule = NotificationSubscription.create(user_id="u1", event="NEW_ITEM", scope="ROLE", value="MANAGER")
        assert rule.matches("u2", "MANAGER")
        assert not rule.matches("u2", "EMPLOYEE")

    def test_role_scope_needs_an_actor(self):
        rule = NotificationSubscription.create(user_id="u1", event="NEW_ITEM", scope="ROLE", value="MANAGER")
        assert not rule.matches(None, None)

    def test_user_scope_matches_actor_id(self):
        rule = NotificationSubscription.create(user_id="u1", event="COMMENT", scope="USER", value="u7")
        assert rule.matches("u7", "EMPLOYEE")
        assert not rule.matches("u8", "EMPLOYEE")
        assert not rule.matches(None, None)
