"""Chat-bot channel port — abstract interface for messenger dispatch."""

from abc import ABC, abstractmethod


class ChatPort(ABC):
    """Abstract interface for chat-bot adapters (Telegram-style bots)."""

    @abstractmethod
    def send(self, chat_id: str, text: str) -> dict:
        """Send a message to a chat.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
