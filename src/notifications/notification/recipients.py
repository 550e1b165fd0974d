"""Recipient resolver — explicit recipients plus subscription matches.

Explicit recipients always come first and keep their order; subscribers
are appended in the order their rules are stored. The result holds each
user identifier once.
"""

import structlog
from notifications.directory.user_profile import UserProfile
from notifications.notification.capabilities import StorageCapabilities
from notifications.notification.notification import EventType
from notifications.preference.settings import ALL_EVENTS
from notifications.subscription.subscription import NotificationSubscription
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


def _subscription_rules(event_type: EventType) -> list[NotificationSubscription]:
    repo = current_domain.repository_for(NotificationSubscription)
    rules = []
    for event in (ALL_EVENTS, event_type.value):
        rules.extend(repo._dao.query.filter(event=event).limit(None).all().items)
    return rules


def _actor_role(actor_id) -> str | None:
    if not actor_id:
        return None
    repo = current_domain.repository_for(UserProfile)
    profiles = repo._dao.query.filter(user_id=str(actor_id)).all().items
    return profiles[0].role if profiles else None


def resolve_recipients(
    event_type: EventType,
    user_ids=None,
    actor_id=None,
    include_subscriptions: bool = True,
    capabilities: StorageCapabilities | None = None,
) -> list[str]:
    recipients = list(dict.fromkeys(str(user_id) for user_id in (user_ids or []) if user_id))

    if not include_subscriptions or (capabilities is not None and not capabilities.subscriptions):
        return recipients

    try:
        rules = _subscription_rules(event_type)
    except Exception as exc:
        if capabilities is not None:
            capabilities.subscriptions = False
        logger.warning(
            "Subscriptions unavailable, notifying explicit recipients only",
            event_type=event_type.value,
            error=str(exc),
        )
        return recipients

    if not rules:
        return recipients

    actor_role = _actor_role(actor_id)

    seen = set(recipients)
    for rule in rules:
        user_id = str(rule.user_id)
        if user_id not in seen and rule.matches(actor_id, actor_role):
            seen.add(user_id)
            recipients.append(user_id)

    return recipients
