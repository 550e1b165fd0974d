"""Telegram chat adapter — delivers messages through the Telegram Bot API.

Configured from TELEGRAM_BOT_TOKEN. Without a token every send fails with
"telegram_not_configured".
"""

import os

import requests
import structlog
from notifications.channel.chat_port import ChatPort

logger = structlog.get_logger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramChatAdapter(ChatPort):
    def __init__(self, bot_token: str | None = None, timeout: float = 10.0, session: requests.Session | None = None):
        self.bot_token = bot_token or os.environ.get("TELEGRAM_BOT_TOKEN")
        self.timeout = timeout
        self._session = session

    def _post(self, url: str, payload: dict) -> requests.Response:
        http = self._session or requests
        return http.post(url, json=payload, timeout=self.timeout)

    def send(self, chat_id: str, text: str) -> dict:
        if not self.bot_token:
            return {"message_id": None, "status": "failed", "error": "telegram_not_configured"}

        url = f"{TELEGRAM_API_URL}/bot{self.bot_token}/sendMessage"
        try:
            response = self._post(url, {"chat_id": chat_id, "text": text})
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Telegram send failed", chat_id=chat_id, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        if not data.get("ok"):
            description = data.get("description", f"HTTP {response.status_code}")
            logger.error("Telegram API error", chat_id=chat_id, description=description)
            return {"message_id": None, "status": "failed", "error": description}

        message_id = (data.get("result") or {}).get("message_id")
        return {"message_id": str(message_id) if message_id is not None else None, "status": "sent"}
