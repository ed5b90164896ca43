"""Models representing chat messages."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import MessageRole


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class ChatMessage(BaseModel):
    """Represents a single message in a conversation.

    Messages are immutable once created: the history only ever appends
    them or, for the transient placeholder, removes or replaces the
    entry as a whole.  ``hidden_in_chat`` marks context that is sent to
    the remote endpoint but never rendered.  ``pending`` marks the
    placeholder that stands in for an outstanding reply; it is excluded
    from serialisation so placeholders can never be persisted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role: MessageRole
    text: str
    hidden_in_chat: bool = Field(default=False, alias="hiddenInChat")
    timestamp: str = Field(default_factory=utc_now_iso)
    pending: bool = Field(default=False, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _migrate_sender(cls, data: Any) -> Any:
        """Backwards compatibility for legacy ``sender`` records."""
        if not isinstance(data, dict) or "role" in data or "sender" not in data:
            return data

        data = dict(data)
        sender = data.pop("sender")
        data["role"] = MessageRole.USER if sender == "user" else MessageRole.MODEL
        return data

    @classmethod
    def user(cls, text: str) -> "ChatMessage":
        return cls(role=MessageRole.USER, text=text)

    @classmethod
    def model(cls, text: str, hidden: bool = False) -> "ChatMessage":
        return cls(role=MessageRole.MODEL, text=text, hidden_in_chat=hidden)

    @classmethod
    def placeholder(cls, text: str) -> "ChatMessage":
        return cls(role=MessageRole.MODEL, text=text, pending=True)

    def to_record(self) -> dict[str, Any]:
        """Return the JSON-ready persisted form of this message."""
        return self.model_dump(mode="json", by_alias=True)
