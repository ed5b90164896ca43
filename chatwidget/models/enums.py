"""Enumerations used across models."""

from enum import Enum


class MessageRole(str, Enum):
    """Enum for message roles in a conversation.

    ``USER`` denotes a human message and ``MODEL`` denotes a reply from
    the remote text-generation endpoint.  Hidden context (such as a
    system preamble) is carried as a ``MODEL`` message flagged
    ``hiddenInChat``.
    """

    USER = "user"
    MODEL = "model"


class RequestState(str, Enum):
    """States of the single in-flight request owned by the controller."""

    IDLE = "idle"
    SENDING = "sending"
    AWAITING_RESPONSE = "awaiting_response"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EnvelopeShape(str, Enum):
    """Wire format spoken with the remote endpoint."""

    CUSTOM = "custom"
    GENERIC = "generic"
