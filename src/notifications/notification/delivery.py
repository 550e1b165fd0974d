"""Channel fan-out for one recipient.

Every channel the engine knows is considered in a fixed order:

    not a candidate      → no delivery row (in-app excepted: always SENT)
    PUSH                 → SKIPPED push_not_supported
    quiet hours          → SKIPPED quiet_hours
    no contact on file   → SKIPPED missing_email | missing_chat_id | missing_phone
    otherwise            → send via adapter → SENT | FAILED send_failed | FAILED send_timeout

Sends for one recipient run concurrently, each bounded by a timeout. A
failing or hung channel never affects the others.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass

import structlog
from notifications.channel import get_channel
from notifications.directory.user_profile import UserProfile
from notifications.notification.notification import (
    Channel,
    DeliveryStatus,
    EventType,
    FailureReason,
    SkipReason,
)
from notifications.notification.quiet_hours import should_suppress
from notifications.notification.routing import Route
from notifications.preference.settings import QuietMode

logger = structlog.get_logger(__name__)

MISSING_CONTACT = {
    Channel.EMAIL: SkipReason.MISSING_EMAIL,
    Channel.CHAT: SkipReason.MISSING_CHAT_ID,
    Channel.SMS: SkipReason.MISSING_PHONE,
}


@dataclass(frozen=True)
class Message:
    title: str
    body: str | None = None

    @property
    def text(self) -> str:
        return f"{self.title}\n\n{self.body}" if self.body else self.title


@dataclass(frozen=True)
class ChannelOutcome:
    channel: Channel
    status: DeliveryStatus
    recipient: str | None = None
    error: str | None = None


def plan_channels(
    profile: UserProfile,
    route: Route,
    event_type: EventType,
    quiet_hours_active: bool,
    quiet_mode: QuietMode,
) -> tuple[dict[Channel, ChannelOutcome], dict[Channel, str]]:
    """Split channels into terminal outcomes known up front and sends to attempt.

    Returns (outcomes, sends) where `sends` maps channel → recipient address.
    """
    outcomes = {
        Channel.IN_APP: ChannelOutcome(Channel.IN_APP, DeliveryStatus.SENT, recipient=str(profile.user_id)),
    }
    sends = {}

    for channel in Channel:
        if channel == Channel.IN_APP or not route.is_candidate(channel):
            continue

        address = profile.address_for(channel)

        if channel == Channel.PUSH:
            outcomes[channel] = ChannelOutcome(
                channel, DeliveryStatus.SKIPPED, error=SkipReason.PUSH_NOT_SUPPORTED.value
            )
        elif should_suppress(channel, quiet_hours_active, quiet_mode, route.priority, event_type):
            outcomes[channel] = ChannelOutcome(
                channel, DeliveryStatus.SKIPPED, recipient=address, error=SkipReason.QUIET_HOURS.value
            )
        elif not address:
            outcomes[channel] = ChannelOutcome(channel, DeliveryStatus.SKIPPED, error=MISSING_CONTACT[channel].value)
        else:
            sends[channel] = address

    return outcomes, sends


def send_via_channel(adapter, channel: Channel, address: str, message: Message):
    """Call `adapter` with the arguments the port for `channel` expects."""
    if channel == Channel.EMAIL:
        return adapter.send(to=address, subject=message.title, body=message.body or message.title)
    if channel == Channel.CHAT:
        return adapter.send(chat_id=address, text=message.text)
    if channel == Channel.SMS:
        return adapter.send(to=address, body=message.text)
    return {"status": "failed", "error": f"Unknown channel: {channel.value}"}


def _outcome_of(channel: Channel, address: str, future) -> ChannelOutcome:
    failed = ChannelOutcome(channel, DeliveryStatus.FAILED, recipient=address, error=FailureReason.SEND_FAILED.value)
    try:
        result = future.result()
        if not isinstance(result, dict):
            raise TypeError(f"adapter returned {type(result).__name__}, expected dict")
        status = result.get("status")
    except Exception as exc:
        logger.error("Channel adapter raised", channel=channel.value, error=str(exc))
        return failed

    if status == "sent":
        return ChannelOutcome(channel, DeliveryStatus.SENT, recipient=address)

    logger.warning(
        "Channel delivery failed",
        channel=channel.value,
        error=result.get("error", "Unknown dispatch error"),
    )
    return failed


def send_all(sends: dict[Channel, str], message: Message, timeout: float) -> dict[Channel, ChannelOutcome]:
    """Attempt every send concurrently, each on its own thread.

    All sends start together, so `timeout` bounds every call individually. A
    send still running after `timeout` seconds is FAILED.
    """
    if not sends:
        return {}

    adapters = {channel: get_channel(channel.value) for channel in sends}

    executor = ThreadPoolExecutor(max_workers=len(sends))
    try:
        futures = {
            channel: executor.submit(send_via_channel, adapters[channel], channel, address, message)
            for channel, address in sends.items()
        }
        done, _ = wait(futures.values(), timeout=timeout)

        outcomes = {}
        for channel, future in futures.items():
            address = sends[channel]
            if future in done:
                outcomes[channel] = _outcome_of(channel, address, future)
            else:
                logger.warning("Channel delivery timed out", channel=channel.value, timeout=timeout)
                outcomes[channel] = ChannelOutcome(
                    channel, DeliveryStatus.FAILED, recipient=address, error=FailureReason.SEND_TIMEOUT.value
                )
        return outcomes
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def deliver(
    profile: UserProfile,
    route: Route,
    event_type: EventType,
    message: Message,
    quiet_hours_active: bool,
    quiet_mode: QuietMode,
    timeout: float,
) -> list[ChannelOutcome]:
    """Outcomes for every channel that gets a delivery row, in channel order."""
    outcomes, sends = plan_channels(profile, route, event_type, quiet_hours_active, quiet_mode)
    outcomes.update(send_all(sends, message, timeout))
    return [outcomes[channel] for channel in Channel if channel in outcomes]
