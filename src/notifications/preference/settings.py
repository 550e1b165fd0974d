"""Notification settings document — defaults, partial overrides and merging.

The effective settings of a user are built in layers:

    DEFAULT_SETTINGS  ← stored preference document   (origin: STORED)
    DEFAULT_SETTINGS  ← legacy profile columns       (origin: LEGACY)

`merge_settings` is the only place layers are combined. It works on plain
pydantic values and records, per field, which layer the value came from so
that callers (and tests) can tell a default apart from an explicit choice.
"""

from dataclasses import dataclass, field
from enum import Enum

from notifications.notification.notification import Channel, EventType, Priority
from pydantic import BaseModel, ConfigDict, Field, field_validator

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

ALL_EVENTS = "ALL"
EVENT_VALUES = frozenset(e.value for e in EventType)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class DigestFrequency(Enum):
    INSTANT = "INSTANT"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    NEVER = "NEVER"


class QuietMode(Enum):
    ALL = "ALL"
    IMPORTANT_ONLY = "IMPORTANT_ONLY"


class SubscriptionScope(Enum):
    ALL = "ALL"
    ROLE = "ROLE"
    USER = "USER"


class SettingOrigin(Enum):
    DEFAULT = "default"
    STORED = "stored"
    LEGACY = "legacy"


# ---------------------------------------------------------------------------
# Complete settings
# ---------------------------------------------------------------------------
class ChannelToggles(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    in_app: bool
    email: bool
    chat: bool
    sms: bool
    push: bool

    def enabled(self, channel: Channel) -> bool:
        return getattr(self, CHANNEL_TOGGLES[channel])


class MatrixRow(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    event: EventType
    channels: ChannelToggles
    priority: Priority


class SubscriptionRule(BaseModel):
    """Interest in events not addressed to the user personally."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    event: str = ALL_EVENTS
    scope: SubscriptionScope
    value: str | None = None

    @field_validator("event", mode="before")
    @classmethod
    def _known_event(cls, value):
        if isinstance(value, EventType):
            return value.value
        if value != ALL_EVENTS and value not in EVENT_VALUES:
            raise ValueError(f"Unknown event: {value}")
        return value


class NotificationSettings(BaseModel):
    """Fully-populated notification settings of one user."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Channel master switches
    in_app_notifications: bool
    email_notifications: bool
    chat_notifications: bool
    sms_notifications: bool
    push_notifications: bool

    # Email
    email_digest: DigestFrequency

    # Quiet hours
    quiet_hours_enabled: bool
    quiet_hours_start: str = Field(pattern=TIME_PATTERN)
    quiet_hours_end: str = Field(pattern=TIME_PATTERN)
    quiet_mode: QuietMode

    # Display
    sound_notifications: bool
    group_similar: bool
    show_previews: bool
    show_organizations: bool

    # Per-event gates
    notify_on_new_item: bool
    notify_on_status_change: bool
    notify_on_comment: bool
    notify_on_assignment: bool
    notify_on_deadline: bool
    notify_on_system: bool

    # Routing
    matrix: tuple[MatrixRow, ...]
    subscriptions: tuple[SubscriptionRule, ...]

    def matrix_row(self, event: EventType) -> MatrixRow | None:
        return next((row for row in self.matrix if row.event == event), None)

    def to_document(self) -> dict:
        return self.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Partial documents (stored preferences, update requests)
# ---------------------------------------------------------------------------
class ChannelTogglesOverride(BaseModel):
    model_config = ConfigDict(extra="ignore")

    in_app: bool | None = None
    email: bool | None = None
    chat: bool | None = None
    sms: bool | None = None
    push: bool | None = None


class MatrixRowOverride(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: EventType
    channels: ChannelTogglesOverride | None = None
    priority: Priority | None = None


class SettingsOverride(BaseModel):
    """A partial settings document. Omitted fields keep the underlying layer."""

    model_config = ConfigDict(extra="ignore")

    in_app_notifications: bool | None = None
    email_notifications: bool | None = None
    chat_notifications: bool | None = None
    sms_notifications: bool | None = None
    push_notifications: bool | None = None
    email_digest: DigestFrequency | None = None
    quiet_hours_enabled: bool | None = None
    quiet_hours_start: str | None = Field(default=None, pattern=TIME_PATTERN)
    quiet_hours_end: str | None = Field(default=None, pattern=TIME_PATTERN)
    quiet_mode: QuietMode | None = None
    sound_notifications: bool | None = None
    group_similar: bool | None = None
    show_previews: bool | None = None
    show_organizations: bool | None = None
    notify_on_new_item: bool | None = None
    notify_on_status_change: bool | None = None
    notify_on_comment: bool | None = None
    notify_on_assignment: bool | None = None
    notify_on_deadline: bool | None = None
    notify_on_system: bool | None = None
    matrix: list[MatrixRowOverride] | None = None
    subscriptions: list[SubscriptionRule] | None = None


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
CHANNEL_TOGGLES = {
    Channel.IN_APP: "in_app",
    Channel.EMAIL: "email",
    Channel.CHAT: "chat",
    Channel.SMS: "sms",
    Channel.PUSH: "push",
}


def _row(event, priority, *channels):
    return MatrixRow(
        event=event,
        channels=ChannelToggles(**{CHANNEL_TOGGLES[c]: c in channels for c in Channel}),
        priority=priority,
    )


DEFAULT_MATRIX = (
    _row(EventType.NEW_ITEM, Priority.NORMAL, Channel.IN_APP, Channel.EMAIL),
    _row(EventType.STATUS_CHANGE, Priority.NORMAL, Channel.IN_APP),
    _row(EventType.COMMENT, Priority.NORMAL, Channel.IN_APP, Channel.EMAIL),
    _row(EventType.ASSIGNMENT, Priority.NORMAL, Channel.IN_APP, Channel.EMAIL),
    _row(EventType.DEADLINE_URGENT, Priority.HIGH, Channel.IN_APP, Channel.EMAIL, Channel.CHAT),
    _row(EventType.DEADLINE_OVERDUE, Priority.CRITICAL, *Channel),
    _row(EventType.SYSTEM, Priority.NORMAL, Channel.IN_APP, Channel.EMAIL),
)

DEFAULT_SETTINGS = NotificationSettings(
    in_app_notifications=True,
    email_notifications=True,
    chat_notifications=True,
    sms_notifications=True,
    push_notifications=False,
    email_digest=DigestFrequency.INSTANT,
    quiet_hours_enabled=False,
    quiet_hours_start="22:00",
    quiet_hours_end="08:00",
    quiet_mode=QuietMode.ALL,
    sound_notifications=True,
    group_similar=True,
    show_previews=True,
    show_organizations=True,
    notify_on_new_item=True,
    notify_on_status_change=True,
    notify_on_comment=True,
    notify_on_assignment=True,
    notify_on_deadline=True,
    notify_on_system=True,
    matrix=DEFAULT_MATRIX,
    subscriptions=(),
)

_missing_rows = set(EventType) - {row.event for row in DEFAULT_MATRIX}
if _missing_rows:
    raise RuntimeError(f"Default matrix has no row for: {sorted(e.value for e in _missing_rows)}")

_missing_toggles = set(Channel) - set(CHANNEL_TOGGLES)
if _missing_toggles:
    raise RuntimeError(f"No matrix toggle for channels: {sorted(c.value for c in _missing_toggles)}")


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------
def matrix_key(event: EventType) -> str:
    return f"matrix.{event.value}"


def default_origins() -> dict[str, SettingOrigin]:
    origins = {name: SettingOrigin.DEFAULT for name in NotificationSettings.model_fields if name != "matrix"}
    origins.update({matrix_key(event): SettingOrigin.DEFAULT for event in EventType})
    return origins


@dataclass(frozen=True)
class ResolvedSettings:
    """Effective settings plus the layer each field was taken from."""

    settings: NotificationSettings
    origins: dict[str, SettingOrigin] = field(default_factory=default_origins)

    def origin_of(self, name: str) -> SettingOrigin:
        return self.origins[name]


def _merge_matrix(base_rows, overrides) -> tuple[tuple[MatrixRow, ...], set[EventType]]:
    rows = {row.event: row for row in base_rows}
    for default_row in DEFAULT_MATRIX:
        rows.setdefault(default_row.event, default_row)

    touched = set()
    for override in overrides:
        current = rows[override.event]
        channels = current.channels.model_dump()
        if override.channels is not None:
            channels.update(override.channels.model_dump(exclude_none=True))
        rows[override.event] = MatrixRow(
            event=override.event,
            channels=ChannelToggles(**channels),
            priority=override.priority or current.priority,
        )
        touched.add(override.event)

    ordered = tuple(rows[event] for event in EventType)
    return ordered, touched


def merge_settings(base: ResolvedSettings, override: SettingsOverride, origin: SettingOrigin) -> ResolvedSettings:
    """Overlay a partial document onto complete settings.

    Only fields the override explicitly sets (and that are not None) are
    applied. Matrix rows merge per event, falling back to the base row for
    channel flags the override omits; subscriptions are replaced wholesale.
    """
    values = base.settings.model_dump()
    origins = dict(base.origins)

    for name in override.model_fields_set:
        value = getattr(override, name)
        if value is None:
            continue
        if name == "matrix":
            matrix, touched = _merge_matrix(base.settings.matrix, value)
            values["matrix"] = matrix
            origins.update({matrix_key(event): origin for event in touched})
            continue
        if name == "subscriptions":
            value = tuple(value)
        values[name] = value
        origins[name] = origin

    if "matrix" not in override.model_fields_set or override.matrix is None:
        values["matrix"], _ = _merge_matrix(base.settings.matrix, [])

    return ResolvedSettings(settings=NotificationSettings.model_validate(values), origins=origins)


def defaults() -> ResolvedSettings:
    return ResolvedSettings(settings=DEFAULT_SETTINGS)
