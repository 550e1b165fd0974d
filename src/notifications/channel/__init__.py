"""Channel adapter registry — pluggable notification dispatch channels.

Provides singleton access to channel adapters. Uses fake adapters by
default; set NOTIFICATION_CHANNELS=live to use the SMTP, Telegram and
Twilio adapters (configured via their own environment variables).
In-app has no adapter and push is not supported.
"""

import os

from notifications.notification.notification import Channel

_channel_instances: dict[str, object] = {}


def _live_channels() -> bool:
    return os.environ.get("NOTIFICATION_CHANNELS", "fake").lower() == "live"


def get_channel(channel_type: str):
    """Return the configured channel adapter (singleton per channel type).

    Args:
        channel_type: One of the Channel enum values with an adapter ("EMAIL", "CHAT", "SMS")
    """
    if channel_type not in _channel_instances:
        live = _live_channels()
        if channel_type == Channel.EMAIL.value:
            if live:
                from notifications.channel.smtp_email import SMTPEmailAdapter

                _channel_instances[channel_type] = SMTPEmailAdapter()
            else:
                from notifications.channel.fake_email import FakeEmailAdapter

                _channel_instances[channel_type] = FakeEmailAdapter()
        elif channel_type == Channel.CHAT.value:
            if live:
                from notifications.channel.telegram_chat import TelegramChatAdapter

                _channel_instances[channel_type] = TelegramChatAdapter()
            else:
                from notifications.channel.fake_chat import FakeChatAdapter

                _channel_instances[channel_type] = FakeChatAdapter()
        elif channel_type == Channel.SMS.value:
            if live:
                from notifications.channel.twilio_sms import TwilioSMSAdapter

                _channel_instances[channel_type] = TwilioSMSAdapter()
            else:
                from notifications.channel.fake_sms import FakeSMSAdapter

                _channel_instances[channel_type] = FakeSMSAdapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
