"""Extract the reply text from a response envelope.

A body that is not a JSON object is a :class:`MalformedResponse`.  An
envelope that explicitly reports an error is a :class:`TransportError`.
Any other missing field falls back to a fixed reply so the user always
sees something.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from ..models.enums import EnvelopeShape
from ..utils.error_handler import MalformedResponse, TransportError

_BOLD = re.compile(r"\*\*(.*?)\*\*")

DEFAULT_FALLBACK_REPLY = "Sorry, I didn't get a response from the bot."


def normalize_reply(text: str) -> str:
    """Strip ``**bold**`` markers and surrounding whitespace."""
    return _BOLD.sub(r"\1", text).strip()


class ResponseExtractor(ABC):
    """Parses a decoded JSON envelope into a plain reply string."""

    def __init__(self, fallback_reply: str = DEFAULT_FALLBACK_REPLY) -> None:
        self.fallback_reply = fallback_reply

    def parse(self, envelope: Any) -> str:
        if not isinstance(envelope, dict):
            raise MalformedResponse(
                f"Expected a JSON object, got {type(envelope).__name__}"
            )
        text = self._extract(envelope)
        if not isinstance(text, str):
            logger.warning("Reply text missing from envelope; using fallback")
            return self.fallback_reply
        return normalize_reply(text) or self.fallback_reply

    @abstractmethod
    def _extract(self, envelope: dict) -> Any:
        """Return the raw reply text, or ``None`` when it cannot be found."""


class CustomBackendExtractor(ResponseExtractor):
    """``{status, aiResponse, message}`` envelopes."""

    def _extract(self, envelope: dict) -> Any:
        status = envelope.get("status")
        if status != "SUCCESS":
            raise TransportError(envelope.get("message") or "Failed to get AI response")
        return envelope.get("aiResponse")


class GenericCompletionExtractor(ResponseExtractor):
    """``{candidates: [{content: {parts: [{text}]}}], error}`` envelopes."""

    def _extract(self, envelope: dict) -> Any:
        error = envelope.get("error")
        if isinstance(error, dict) and error.get("message"):
            raise TransportError(error["message"])
        try:
            return envelope["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None


def create_response_extractor(
    shape: EnvelopeShape, fallback_reply: str = DEFAULT_FALLBACK_REPLY
) -> ResponseExtractor:
    if shape == EnvelopeShape.CUSTOM:
        return CustomBackendExtractor(fallback_reply)
    if shape == EnvelopeShape.GENERIC:
        return GenericCompletionExtractor(fallback_reply)
    raise ValueError(f"Unsupported envelope shape: {shape}")
