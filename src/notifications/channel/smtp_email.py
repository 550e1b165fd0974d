"""SMTP email adapter — delivers email through a configured SMTP relay.

Configured from the environment: SMTP_HOST, SMTP_PORT (587), SMTP_USER,
SMTP_PASS, SMTP_FROM and SMTP_USE_TLS ("true"). Without SMTP_HOST every
send fails with "smtp_not_configured".
"""

import os
import smtplib
from email.mime.text import MIMEText
from uuid import uuid4

import structlog
from notifications.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)


class SMTPEmailAdapter(EmailPort):
    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        use_tls: bool | None = None,
        timeout: float = 10.0,
    ):
        self.host = host or os.environ.get("SMTP_HOST")
        self.port = port or int(os.environ.get("SMTP_PORT", "587"))
        self.username = username or os.environ.get("SMTP_USER")
        self.password = password or os.environ.get("SMTP_PASS")
        self.sender = sender or os.environ.get("SMTP_FROM") or self.username
        if use_tls is None:
            use_tls = os.environ.get("SMTP_USE_TLS", "true").lower() == "true"
        self.use_tls = use_tls
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.host and self.sender)

    def send(self, to: str, subject: str, body: str) -> dict:
        if not self.configured:
            return {"message_id": None, "status": "failed", "error": "smtp_not_configured"}

        message_id = f"<{uuid4().hex}@{self.host}>"
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg["Message-ID"] = message_id

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP send failed", to=to, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        return {"message_id": message_id, "status": "sent"}
