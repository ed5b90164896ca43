"""Build outbound request bodies from the conversation history.

The wire shape is a strategy chosen at configuration time.  Both
strategies skip the placeholder: it exists only for local display and
must never reach the endpoint as content.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Sequence

from ..models.chat_message import ChatMessage
from ..models.chat_request import Content, ContentPart, CustomChatRequest, GenericChatRequest
from ..models.enums import EnvelopeShape, MessageRole
from ..utils.error_handler import EmptyInput


class RequestFormatter(ABC):
    """Turns history into a JSON-ready request body."""

    @abstractmethod
    def build(self, history: Sequence[ChatMessage], session_id: str) -> Dict[str, Any]:
        """Return the request body for ``history``."""


class CustomBackendFormatter(RequestFormatter):
    """``{userMessage, sessionId}``: the latest user message only."""

    def build(self, history: Sequence[ChatMessage], session_id: str) -> Dict[str, Any]:
        for message in reversed(history):
            if message.role == MessageRole.USER and not message.pending:
                request = CustomChatRequest(user_message=message.text, session_id=session_id)
                return request.model_dump(by_alias=True)
        raise EmptyInput("History contains no user message to send")


class GenericCompletionFormatter(RequestFormatter):
    """``{contents: [{role, parts: [{text}]}]}``: the whole history.

    Hidden context messages are included since they carry the system
    context the endpoint needs.
    """

    def build(self, history: Sequence[ChatMessage], session_id: str) -> Dict[str, Any]:
        contents = [
            Content(role=message.role.value, parts=[ContentPart(text=message.text)])
            for message in history
            if not message.pending
        ]
        return GenericChatRequest(contents=contents).model_dump()


def create_request_formatter(shape: EnvelopeShape) -> RequestFormatter:
    if shape == EnvelopeShape.CUSTOM:
        return CustomBackendFormatter()
    if shape == EnvelopeShape.GENERIC:
        return GenericCompletionFormatter()
    raise ValueError(f"Unsupported envelope shape: {shape}")
