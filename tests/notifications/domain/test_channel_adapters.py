"""Tests for channel adapters — fakes, the registry and the live adapters."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest
import requests
from notifications.channel import get_channel, reset_channels
from notifications.channel.fake_chat import FakeChatAdapter
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.channel.fake_sms import FakeSMSAdapter
from notifications.channel.smtp_email import SMTPEmailAdapter
from notifications.channel.telegram_chat import TelegramChatAdapter
from notifications.channel.twilio_sms import TwilioSMSAdapter


class TestFakeEmailAdapter:
    def setup_method(self):
        self.adapter = FakeEmailAdapter()

    def test_send_records_email(self):
        result = self.adapter.send(to="test@example.com", subject="Hi", body="Hello!")
        assert result["status"] == "sent"
        assert result["message_id"] is not None
        assert self.adapter.sent_emails[0]["to"] == "test@example.com"

    def test_send_failure(self):
        self.adapter.configure(should_succeed=False, failure_reason="SMTP error")
        result = self.adapter.send(to="a@b.com", subject="Hi", body="Hello")
        assert result["status"] == "failed"
        assert result["error"] == "SMTP error"
        assert len(self.adapter.sent_emails) == 0

    def test_reset(self):
        self.adapter.send(to="a@b.com", subject="Hi", body="Hello")
        self.adapter.configure(should_succeed=False)
        self.adapter.reset()
        assert len(self.adapter.sent_emails) == 0
        assert self.adapter.should_succeed is True


class TestFakeChatAdapter:
    def setup_method(self):
        self.adapter = FakeChatAdapter()

    def test_send_records_message(self):
        result = self.adapter.send(chat_id="1001", text="Item #1 assigned")
        assert result["status"] == "sent"
        assert self.adapter.sent_messages[0] == {
            "message_id": result["message_id"],
            "chat_id": "1001",
            "text": "Item #1 assigned",
        }

    def test_send_failure(self):
        self.adapter.configure(should_succeed=False)
        assert self.adapter.send(chat_id="1001", text="Hi")["status"] == "failed"


class TestFakeSMSAdapter:
    def setup_method(self):
        self.adapter = FakeSMSAdapter()

    def test_send_records_message(self):
        result = self.adapter.send(to="+15551234567", body="Deadline missed")
        assert result["status"] == "sent"
        assert self.adapter.sent_messages[0]["to"] == "+15551234567"

    def test_reset(self):
        self.adapter.send(to="+1555", body="Hi")
        self.adapter.reset()
        assert len(self.adapter.sent_messages) == 0


class TestChannelRegistry:
    def test_fakes_by_default(self):
        assert isinstance(get_channel("EMAIL"), FakeEmailAdapter)
        assert isinstance(get_channel("CHAT"), FakeChatAdapter)
        assert isinstance(get_channel("SMS"), FakeSMSAdapter)

    def test_singletons(self):
        assert get_channel("EMAIL") is get_channel("EMAIL")

    def test_reset_creates_new_instances(self):
        first = get_channel("SMS")
        reset_channels()
        assert get_channel("SMS") is not first

    def test_live_adapters(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_CHANNELS", "live")
        reset_channels()
        assert isinstance(get_channel("EMAIL"), SMTPEmailAdapter)
        assert isinstance(get_channel("CHAT"), TelegramChatAdapter)
        assert isinstance(get_channel("SMS"), TwilioSMSAdapter)

    @pytest.mark.parametrize("channel_type", ["IN_APP", "PUSH", "PIGEON"])
    def test_channels_without_adapter(self, channel_type):
        with pytest.raises(ValueError, match="Unknown channel type"):
            get_channel(channel_type)


class TestSMTPEmailAdapter:
    def test_not_configured(self, monkeypatch):
        monkeypatch.delenv("SMTP_HOST", raising=False)
        monkeypatch.delenv("SMTP_FROM", raising=False)
        monkeypatch.delenv("SMTP_USER", raising=False)
        result = SMTPEmailAdapter().send(to="a@example.com", subject="Hi", body="Hello")
        assert result == {"message_id": None, "status": "failed", "error": "smtp_not_configured"}

    def test_send(self):
        adapter = SMTPEmailAdapter(
            host="smtp.example.com", port=2525, username="bot", password="secret", sender="bot@example.com"
        )
        with patch("notifications.channel.smtp_email.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            result = adapter.send(to="a@example.com", subject="Hi", body="Hello")

        assert result["status"] == "sent"
        smtp_cls.assert_called_once_with("smtp.example.com", 2525, timeout=10.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot", "secret")
        message = server.send_message.call_args.args[0]
        assert message["To"] == "a@example.com"
        assert message["Subject"] == "Hi"

    def test_smtp_error_is_a_failed_result(self):
        adapter = SMTPEmailAdapter(host="smtp.example.com", sender="bot@example.com", use_tls=False)
        with patch("notifications.channel.smtp_email.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            server.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
            result = adapter.send(to="a@example.com", subject="Hi", body="Hello")

        assert result["status"] == "failed"
        server.starttls.assert_not_called()

    def test_connection_error_is_a_failed_result(self):
        adapter = SMTPEmailAdapter(host="smtp.example.com", sender="bot@example.com")
        with patch("notifications.channel.smtp_email.smtplib.SMTP", side_effect=ConnectionRefusedError("refused")):
            result = adapter.send(to="a@example.com", subject="Hi", body="Hello")
        assert result["status"] == "failed"
        assert "refused" in result["error"]


def _session(status_code=200, payload=None, error=None):
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.post.side_effect = error
    else:
        response = MagicMock(status_code=status_code)
        response.json.return_value = payload or {}
        session.post.return_value = response
    return session


class TestTelegramChatAdapter:
    def test_not_configured(self, monkeypatch):
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        result = TelegramChatAdapter().send(chat_id="1", text="Hi")
        assert result["error"] == "telegram_not_configured"

    def test_send(self):
        session = _session(payload={"ok": True, "result": {"message_id": 77}})
        adapter = TelegramChatAdapter(bot_token="123:abc", session=session)
        result = adapter.send(chat_id="1001", text="Item #1 assigned")

        assert result == {"message_id": "77", "status": "sent"}
        url = session.post.call_args.args[0]
        assert url == "https://api.telegram.org/bot123:abc/sendMessage"
        assert session.post.call_args.kwargs["json"] == {"chat_id": "1001", "text": "Item #1 assigned"}
        assert session.post.call_args.kwargs["timeout"] == 10.0

    def test_api_error(self):
        session = _session(status_code=400, payload={"ok": False, "description": "Bad Request: chat not found"})
        adapter = TelegramChatAdapter(bot_token="123:abc", session=session)
        result = adapter.send(chat_id="1001", text="Hi")
        assert result["status"] == "failed"
        assert result["error"] == "Bad Request: chat not found"

    def test_transport_error(self):
        session = _session(error=requests.ConnectionError("unreachable"))
        adapter = TelegramChatAdapter(bot_token="123:abc", session=session)
        result = adapter.send(chat_id="1001", text="Hi")
        assert result["status"] == "failed"
        assert "unreachable" in result["error"]


class TestTwilioSMSAdapter:
    def test_not_configured(self, monkeypatch):
        for name in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_FROM"):
            monkeypatch.delenv(name, raising=False)
        result = TwilioSMSAdapter().send(to="+15550100", body="Hi")
        assert result["error"] == "twilio_not_configured"

    def test_send(self):
        session = _session(status_code=201, payload={"sid": "SM123"})
        adapter = TwilioSMSAdapter(account_sid="AC1", auth_token="tok", sender="+15550000", session=session)
        result = adapter.send(to="+15550100", body="Deadline missed")

        assert result == {"message_id": "SM123", "status": "sent"}
        call = session.post.call_args
        assert call.args[0] == "https://api.twilio.com/2010-04-01/Accounts/AC1/Messages.json"
        assert call.kwargs["auth"] == ("AC1", "tok")
        assert call.kwargs["data"] == {"To": "+15550100", "From": "+15550000", "Body": "Deadline missed"}

    def test_http_error_status(self):
        session = _session(status_code=401, payload={"message": "Authenticate"})
        adapter = TwilioSMSAdapter(account_sid="AC1", auth_token="tok", sender="+15550000", session=session)
        result = adapter.send(to="+15550100", body="Hi")
        assert result == {"message_id": None, "status": "failed", "error": "HTTP 401"}

    def test_posts_without_session(self):
        adapter = TwilioSMSAdapter(account_sid="AC1", auth_token="tok", sender="+15550000")
        response = MagicMock(status_code=201)
        response.json.return_value = {"sid": "SM9"}
        with patch("notifications.channel.twilio_sms.requests.post", return_value=response) as post:
            result = adapter.send(to="+15550100", body="Hi")
        assert result["message_id"] == "SM9"
        assert post.call_args.kwargs["timeout"] == 10.0
