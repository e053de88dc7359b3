"""Conversation data models."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

USER = "user"
ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatTurn:
    """A single message in a client-side conversation."""
    role: str  # USER or ASSISTANT
    text: str
    occurred_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ChatTurn"]:
        """
        Parse one history item sent by the browser widget.

        The widget sends ``{"role": "user" | "bot", "content": "..."}``; older
        builds used ``text`` instead of ``content``. Any role other than
        ``user`` is treated as the assistant.

        Returns:
            ChatTurn, or None when the item is not a usable message
        """
        if not isinstance(data, dict):
            return None

        text = data.get("content", data.get("text"))
        if not isinstance(text, str):
            return None

        role = USER if data.get("role") == USER else ASSISTANT
        return cls(role=role, text=text, occurred_at=_parse_timestamp(data.get("timestamp")))

    def to_message(self) -> dict:
        """Chat-completions message for this turn."""
        return {"role": self.role, "content": self.text}


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
