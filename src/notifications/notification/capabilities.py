"""Storage capabilities — optional features that depend on schema being provisioned.

Subscriptions and deduplication both depend on storage that older
deployments may not have yet (the subscription table, the `dedupe_key`
column on notifications). Rather than reacting to driver error messages,
the engine decides once per process which of them are available:

- explicit flags under `[custom.capabilities]` in domain.toml win;
- otherwise SQLAlchemy-backed providers are inspected for the table and
  column;
- non-relational providers (memory) always have both.

Each dispatch works on its own copy so that a storage failure mid-dispatch
can switch a feature off for the rest of that dispatch only.
"""

from dataclasses import dataclass, replace

import structlog
from notifications.notification.notification import Notification
from notifications.subscription.subscription import NotificationSubscription
from notifications.utils.db import RELATIONAL_PROVIDERS
from protean.utils.globals import current_domain
from sqlalchemy import create_engine, inspect

logger = structlog.get_logger(__name__)

_capabilities = None


@dataclass
class StorageCapabilities:
    subscriptions: bool = True
    dedupe: bool = True

    def copy(self) -> "StorageCapabilities":
        return replace(self)


def custom_setting(name, default=None):
    """Read a value from the `[custom]` section of the domain config."""
    custom = current_domain.config.get("custom") or {}
    return custom.get(name, default)


def _schema_name(cls):
    return cls.meta_.schema_name


def _inspect_provider(conn_info) -> StorageCapabilities:
    engine = create_engine(conn_info["database_uri"])
    try:
        inspector = inspect(engine)
        subscriptions = inspector.has_table(_schema_name(NotificationSubscription))
        dedupe = False
        notification_table = _schema_name(Notification)
        if inspector.has_table(notification_table):
            columns = {column["name"] for column in inspector.get_columns(notification_table)}
            dedupe = "dedupe_key" in columns
        return StorageCapabilities(subscriptions=subscriptions, dedupe=dedupe)
    finally:
        engine.dispose()


def probe_capabilities() -> StorageCapabilities:
    """Determine which optional storage features the active domain supports."""
    capabilities = StorageCapabilities()

    for _, provider in current_domain.providers.items():
        if provider.conn_info["provider"] in RELATIONAL_PROVIDERS:
            found = _inspect_provider(provider.conn_info)
            capabilities.subscriptions = capabilities.subscriptions and found.subscriptions
            capabilities.dedupe = capabilities.dedupe and found.dedupe

    configured = custom_setting("capabilities") or {}
    for name in ("subscriptions", "dedupe"):
        if name in configured:
            setattr(capabilities, name, bool(configured[name]))

    if not (capabilities.subscriptions and capabilities.dedupe):
        logger.warning(
            "Notification storage is partially provisioned",
            subscriptions=capabilities.subscriptions,
            dedupe=capabilities.dedupe,
        )

    return capabilities


def get_capabilities() -> StorageCapabilities:
    """Capabilities probed once per process; callers receive a private copy."""
    global _capabilities
    if _capabilities is None:
        _capabilities = probe_capabilities()
    return _capabilities.copy()


def reset_capabilities():
    """Forget probed capabilities (useful for testing and after migrations)."""
    global _capabilities
    _capabilities = None
