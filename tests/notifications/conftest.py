import pytest
from notifications.channel import reset_channels
from notifications.notification.capabilities import reset_capabilities
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def notifications_bed():
    from notifications.domain import notifications

    bed = DomainFixture(notifications)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(notifications_bed):
    reset_channels()
    reset_capabilities()
    with notifications_bed.domain_context():
        yield
    reset_channels()
    reset_capabilities()


@pytest.fixture()
def register_user():
    """Factory: store a UserProfile and return it.

    Extra keyword arguments set profile attributes directly (legacy columns).
    """
    from notifications.directory.user_profile import UserProfile
    from protean import current_domain

    def _register(user_id, role="EMPLOYEE", email=None, phone=None, chat_id=None, **attributes):
        profile = UserProfile.register(
            user_id=user_id,
            role=role,
            name=f"User {user_id}",
            email=email,
            phone=phone,
            chat_id=chat_id,
        )
        for name, value in attributes.items():
            setattr(profile, name, value)
        current_domain.repository_for(UserProfile).add(profile)
        return profile

    return _register


@pytest.fixture()
def store_settings():
    """Factory: store a (partial) settings document for a user as-is."""
    import json

    from notifications.preference.preference import NotificationPreference
    from protean import current_domain

    def _store(user_id, document):
        preference = NotificationPreference.create(user_id=user_id, document={})
        preference.settings = document if isinstance(document, str) else json.dumps(document)
        current_domain.repository_for(NotificationPreference).add(preference)
        return preference

    return _store


@pytest.fixture()
def unique_id():
    """Factory: a fresh identifier per call, so tests never share users."""
    from uuid import uuid4

    def _unique_id(prefix="user"):
        return f"{prefix}-{uuid4().hex[:10]}"

    return _unique_id
