"""NotificationSubscription aggregate — interest in events not addressed to the user.

A subscription row says "notify me about <event> (or ALL events) when the
acting user is <anyone | someone with role X | user X>". Rows are never
edited: a settings update deletes a user's rows and recreates them.
"""

from datetime import UTC, datetime

from notifications.domain import notifications
from notifications.preference.settings import ALL_EVENTS, EVENT_VALUES, SubscriptionScope
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String


@notifications.aggregate
class NotificationSubscription:
    user_id: Identifier(required=True)
    event: String(required=True, max_length=50)  # "ALL" or an EventType value
    scope: String(choices=SubscriptionScope, required=True)
    value: String(max_length=255)  # role name or acting user id
    created_at: DateTime()

    @classmethod
    def create(cls, user_id, event, scope, value=None):
        if event != ALL_EVENTS and event not in EVENT_VALUES:
            raise ValidationError({"event": [f"Unknown event: {event}"]})
        if scope != SubscriptionScope.ALL.value and not value:
            raise ValidationError({"value": [f"A value is required for {scope} subscriptions"]})

        return cls(
            user_id=user_id,
            event=event,
            scope=scope,
            value=value,
            created_at=datetime.now(UTC),
        )

    def matches(self, actor_id=None, actor_role=None) -> bool:
        """Whether this rule selects its owner for an event performed by `actor_id`."""
        if self.scope == SubscriptionScope.ALL.value:
            return True
        if self.scope == SubscriptionScope.ROLE.value:
            return actor_role is not None and self.value == actor_role
        if self.scope == SubscriptionScope.USER.value:
            return actor_id is not None and self.value == str(actor_id)
        return False
