"""Twilio SMS adapter — delivers text messages through the Twilio REST API.

Configured from TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_FROM.
Without them every send fails with "twilio_not_configured".
"""

import os

import requests
import structlog
from notifications.channel.sms_port import SMSPort

logger = structlog.get_logger(__name__)

TWILIO_API_URL = "https://api.twilio.com/2010-04-01"


class TwilioSMSAdapter(SMSPort):
    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        sender: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.account_sid = account_sid or os.environ.get("TWILIO_ACCOUNT_SID")
        self.auth_token = auth_token or os.environ.get("TWILIO_AUTH_TOKEN")
        self.sender = sender or os.environ.get("TWILIO_FROM")
        self.timeout = timeout
        self._session = session

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.sender)

    def _post(self, url: str, data: dict) -> requests.Response:
        http = self._session or requests
        return http.post(url, data=data, auth=(self.account_sid, self.auth_token), timeout=self.timeout)

    def send(self, to: str, body: str) -> dict:
        if not self.configured:
            return {"message_id": None, "status": "failed", "error": "twilio_not_configured"}

        url = f"{TWILIO_API_URL}/Accounts/{self.account_sid}/Messages.json"
        try:
            response = self._post(url, {"To": to, "From": self.sender, "Body": body})
        except requests.RequestException as exc:
            logger.error("Twilio send failed", to=to, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        if response.status_code >= 400:
            logger.error("Twilio API error", to=to, status_code=response.status_code)
            return {"message_id": None, "status": "failed", "error": f"HTTP {response.status_code}"}

        return {"message_id": response.json().get("sid"), "status": "sent"}
