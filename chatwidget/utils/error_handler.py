"""Error handling utilities and custom exceptions."""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger


class ChatError(Exception):
    """Base class for every failure raised by the conversation core."""

    status_code: int = 500
    error_type: str = "chat"


class EmptyInput(ChatError):
    """Raised when the submitted text is blank after trimming."""

    status_code = 422
    error_type = "empty_input"


class MessageTooLong(ChatError):
    """Raised when the submitted text exceeds the configured length."""

    status_code = 422
    error_type = "message_too_long"


class RequestAlreadyInFlight(ChatError):
    """Raised when a send is attempted while another is outstanding."""

    status_code = 409
    error_type = "request_in_flight"


class RetryNotAvailable(ChatError):
    """Raised when retry is requested without a preceding failure."""

    status_code = 409
    error_type = "retry_not_available"


class TransportError(ChatError):
    """Network failure, non-2xx status, or an explicit error envelope."""

    status_code = 502
    error_type = "transport"


class MalformedResponse(ChatError):
    """The response body could not be read as a JSON envelope."""

    status_code = 502
    error_type = "malformed_response"


class PersistenceCorruption(ChatError):
    """Stored history could not be decoded.  Recovered internally."""

    error_type = "persistence"


class NoPlaceholderFound(ChatError):
    """A placeholder operation found no placeholder.  Logged, never surfaced."""

    error_type = "no_placeholder"


class NothingToExport(ChatError):
    """Raised when an export is requested for an empty conversation."""

    status_code = 404
    error_type = "nothing_to_export"


async def http_exception_handler(request: Request, exc: ChatError) -> JSONResponse:
    """Convert a ChatError into a JSON response with its status code."""
    logger.error("ChatError occurred: {}", exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error_type": exc.error_type},
    )
