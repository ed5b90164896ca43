"""Request models: the outbound envelopes and the widget API payload."""

from pydantic import BaseModel, ConfigDict, Field


class CustomChatRequest(BaseModel):
    """Envelope for the custom chat backend.

    Only the latest user message is sent; the backend keeps its own
    per-session context keyed by ``sessionId``.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_message: str = Field(..., alias="userMessage")
    session_id: str = Field(..., alias="sessionId")


class ContentPart(BaseModel):
    text: str


class Content(BaseModel):
    role: str
    parts: list[ContentPart]


class GenericChatRequest(BaseModel):
    """Envelope for a generic multi-turn completion endpoint."""

    contents: list[Content] = Field(default_factory=list)


class SendMessageRequest(BaseModel):
    """Payload accepted by the widget API when the user submits text.

    Length and emptiness are validated by the controller rather than
    here, so the same rules apply whether or not the HTTP boundary is
    used.
    """

    text: str = Field(..., description="The user's message text.")
