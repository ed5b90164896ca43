"""Models describing a conversation as a whole: exports and statistics."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .chat_message import ChatMessage


class ConversationExport(BaseModel):
    """A downloadable snapshot of the visible conversation.

    Serialised with camelCase keys (``sessionId``, ``exportDate``) so the
    document matches what the browser widget has always produced.
    """

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    export_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="exportDate",
    )
    messages: List[ChatMessage] = Field(default_factory=list)

    @property
    def filename(self) -> str:
        return f"chatbot-export-{self.session_id}-{self.export_date.date().isoformat()}.json"


class SessionStats(BaseModel):
    """Summary figures for the visible history of one session."""

    session_id: str
    message_count: int = 0
    first_message_at: Optional[str] = None
    last_message_at: Optional[str] = None
