"""Response models: widget API payloads returned to the presentation layer."""

from pydantic import BaseModel, Field

from .chat_message import ChatMessage
from .enums import RequestState


class SendResult(BaseModel):
    """Outcome of a send or retry as seen by the presentation layer.

    On failure ``reply`` is ``None``, ``error`` carries a user-facing
    description and ``retry_available`` tells the client to offer a
    retry action.
    """

    session_id: str
    state: RequestState
    reply: ChatMessage | None = None
    error: str | None = None
    error_type: str | None = None
    retry_available: bool = False


class HistoryView(BaseModel):
    """The visible conversation together with its session and request state."""

    session_id: str
    state: RequestState
    messages: list[ChatMessage] = Field(default_factory=list)


class ClearResult(BaseModel):
    """Returned after the user clears the conversation."""

    session_id: str = Field(..., description="The newly generated session id.")
