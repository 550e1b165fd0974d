"""Protean Engine runner for the Notifications domain.

Starts the Engine that processes events asynchronously when the domain is
configured with `event_processing = "async"`: inbound Identity and
Correspondence events, and the projectors that maintain the feed,
delivery log and delivery stats.

Usage:
    python src/server.py
"""

import asyncio

from notifications.utils.logging import configure_logging
from protean.server.engine import Engine


async def run():
    from notifications.domain import notifications

    notifications.init()
    await Engine(notifications).run()


def main():
    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
