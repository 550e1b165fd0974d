"""Inbound cross-domain event handler — keeps UserProfile in step with Identity.

UserRegistered creates the profile; UserProfileChanged updates role and
contact details and clears the contacts it lists as removed. Both are
idempotent: a profile that already exists is updated, a change for an
unknown user creates it.
"""

import json

import structlog
from notifications.directory.user_profile import Role, UserProfile
from notifications.domain import notifications
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.identity import UserProfileChanged, UserRegistered

logger = structlog.get_logger(__name__)

notifications.register_external_event(UserRegistered, "Identity.UserRegistered.v1")
notifications.register_external_event(UserProfileChanged, "Identity.UserProfileChanged.v1")

CONTACT_FIELDS = ("email", "phone", "chat_id")


def _find_profile(user_id: str) -> UserProfile | None:
    repo = current_domain.repository_for(UserProfile)
    profiles = repo._dao.query.filter(user_id=user_id).all().items
    return profiles[0] if profiles else None


@notifications.event_handler(part_of=UserProfile, stream_category="identity::user")
class IdentityEventsHandler:
    """Maintains the contact directory used by dispatch."""

    @handle(UserRegistered)
    def on_user_registered(self, event: UserRegistered) -> None:
        repo = current_domain.repository_for(UserProfile)
        user_id = str(event.user_id)

        profile = _find_profile(user_id)
        if profile is None:
            profile = UserProfile.register(
                user_id=user_id,
                role=event.role,
                name=event.name,
                email=event.email,
                phone=event.phone,
                chat_id=event.chat_id,
            )
        else:
            logger.info("Profile already exists, updating from registration", user_id=user_id)
            profile.update_profile(
                role=event.role,
                name=event.name,
                email=event.email or "",
                phone=event.phone or "",
                chat_id=event.chat_id or "",
            )
        repo.add(profile)

    @handle(UserProfileChanged)
    def on_user_profile_changed(self, event: UserProfileChanged) -> None:
        repo = current_domain.repository_for(UserProfile)
        user_id = str(event.user_id)

        profile = _find_profile(user_id)
        if profile is None:
            logger.warning("Profile change for unknown user, creating profile", user_id=user_id)
            profile = UserProfile.register(
                user_id=user_id,
                role=event.role or Role.EMPLOYEE.value,
                name=event.name,
                email=event.email,
                phone=event.phone,
                chat_id=event.chat_id,
            )
        else:
            cleared = set(json.loads(event.cleared)) if event.cleared else set()
            contacts = {name: "" if name in cleared else getattr(event, name) for name in CONTACT_FIELDS}
            profile.update_profile(role=event.role, name=event.name, **contacts)
        repo.add(profile)
