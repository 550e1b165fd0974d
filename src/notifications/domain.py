"""Notifications bounded context — notification dispatch engine for correspondence tracking.

Consumes events from the correspondence system (items, comments, assignments,
deadlines, system messages), resolves who should hear about each one, and
delivers through in-app, email, chat-bot, SMS and push channels. Owns the
per-user notification settings, subscription rules and the append-only
audit trail of notifications and per-channel deliveries.
"""

import structlog
from protean.domain import Domain

notifications = Domain(name="notifications")

logger = structlog.get_logger(__name__)
