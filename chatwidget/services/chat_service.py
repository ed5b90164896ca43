"""Request lifecycle: the single in-flight request for one conversation.

The controller appends the user's message, shows a placeholder while the
remote endpoint works, and then either swaps the placeholder for the
reply or removes it and records the failure so the presentation layer
can offer a retry.  Only one request may be outstanding at a time; a
second send is rejected rather than queued or used to cancel the first.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

import httpx
from loguru import logger

from ..config.widget_config import WidgetConfig, get_widget_config
from ..memory.conversation_store import ConversationStore
from ..models.chat_message import ChatMessage
from ..models.enums import RequestState
from ..utils import api_client
from ..utils.error_handler import (
    ChatError,
    EmptyInput,
    MalformedResponse,
    MessageTooLong,
    NoPlaceholderFound,
    RequestAlreadyInFlight,
    RetryNotAvailable,
    TransportError,
)
from .request_formatter import RequestFormatter, create_request_formatter
from .response_extractor import ResponseExtractor, create_response_extractor

StateListener = Callable[[RequestState, Optional[ChatError]], None]


class RequestLifecycleController:
    """Owns the ``Idle -> Sending -> AwaitingResponse -> Succeeded|Failed -> Idle`` cycle.

    Transport and envelope failures never propagate out of :meth:`send`
    or :meth:`retry`; they are kept in :attr:`last_error` and passed to
    state listeners.  Input problems and concurrent sends are rejected
    synchronously with :class:`EmptyInput`, :class:`MessageTooLong` or
    :class:`RequestAlreadyInFlight` before anything changes.
    """

    def __init__(
        self,
        store: ConversationStore,
        widget_config: WidgetConfig | None = None,
        formatter: RequestFormatter | None = None,
        extractor: ResponseExtractor | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.store = store
        self.widget_config = widget_config or get_widget_config()
        self.formatter = formatter or create_request_formatter(self.widget_config.envelope)
        self.extractor = extractor or create_response_extractor(
            self.widget_config.envelope, self.widget_config.fallback_reply
        )
        self.client = client
        self.state = RequestState.IDLE
        self.last_outcome: RequestState | None = None
        self.last_error: ChatError | None = None
        self.retry_available = False
        self._listeners: List[StateListener] = []

    @property
    def in_flight(self) -> bool:
        return self.state in (RequestState.SENDING, RequestState.AWAITING_RESPONSE)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` for state transitions; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def send(self, user_text: str) -> ChatMessage | None:
        """Append ``user_text`` to the history and request a reply.

        Returns the reply message on success and ``None`` on failure.

        Raises:
            EmptyInput: If the text is blank after trimming.
            MessageTooLong: If the text exceeds ``max_message_length``.
            RequestAlreadyInFlight: If another request is outstanding.
        """
        text = (user_text or "").strip()
        if not text:
            raise EmptyInput("Message cannot be empty")
        if len(text) > self.widget_config.max_message_length:
            raise MessageTooLong(
                f"Message cannot exceed {self.widget_config.max_message_length} characters"
            )
        self._ensure_idle()

        self._transition(RequestState.SENDING)
        self.retry_available = False
        self.last_error = None
        try:
            self.store.append(ChatMessage.user(text))
        except Exception:
            self._transition(RequestState.IDLE)
            raise
        return await self._dispatch()

    async def retry(self) -> ChatMessage | None:
        """Re-issue the request built from the current history.

        The failed user message is already in the history, so nothing
        new is appended apart from the placeholder.

        Raises:
            RetryNotAvailable: If the previous request did not fail.
            RequestAlreadyInFlight: If another request is outstanding.
        """
        self._ensure_idle()
        if not self.retry_available:
            raise RetryNotAvailable("There is no failed request to retry")

        logger.info("Retrying last request for session {}", self.store.session.current())
        self._transition(RequestState.SENDING)
        self.retry_available = False
        self.last_error = None
        return await self._dispatch()

    # ------------------------------------------------------------------
    # Internals

    def _ensure_idle(self) -> None:
        if self.state != RequestState.IDLE:
            raise RequestAlreadyInFlight("A request is already in flight")

    async def _dispatch(self) -> ChatMessage | None:
        try:
            return await self._request_reply()
        finally:
            if self.state != RequestState.IDLE:
                logger.warning("Request ended in state {}; resetting to idle", self.state.value)
                self.state = RequestState.IDLE
                self._discard_placeholder()

    async def _request_reply(self) -> ChatMessage | None:
        try:
            self.store.append(ChatMessage.placeholder(self.widget_config.placeholder_text))
            self._transition(RequestState.AWAITING_RESPONSE)
            payload = self.formatter.build(self.store.all(), self.store.session.current())
            response = await api_client.post(
                self.widget_config.endpoint_url,
                payload,
                client=self.client,
                timeout=self.widget_config.request_timeout,
            )
            reply = ChatMessage.model(self.extractor.parse(self._decode(response)))
            self._store_reply(reply)
        except asyncio.CancelledError:
            self._fail(TransportError("Request to chat endpoint was cancelled"))
            raise
        except httpx.HTTPError as exc:
            return self._fail(TransportError(f"Request to chat endpoint failed: {exc}"))
        except ChatError as exc:
            return self._fail(exc)
        except Exception as exc:
            logger.exception("Unexpected error while requesting a reply")
            self._fail(ChatError("Unexpected error while requesting a reply"))
            raise ChatError("Unexpected error while requesting a reply") from exc

        self.last_outcome = RequestState.SUCCEEDED
        self._transition(RequestState.SUCCEEDED)
        self._transition(RequestState.IDLE)
        return reply

    def _store_reply(self, reply: ChatMessage) -> None:
        try:
            self.store.replace_placeholder(reply)
        except NoPlaceholderFound:
            logger.warning("Placeholder vanished before the reply arrived; appending reply")
            self.store.append(reply)

    def _decode(self, response: httpx.Response) -> Any:
        if not response.is_success:
            detail = self._error_detail(response)
            raise TransportError(
                f"HTTP error {response.status_code}" + (f": {detail}" if detail else "")
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse("Response body is not valid JSON") from exc

    @staticmethod
    def _error_detail(response: httpx.Response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        message = body.get("message")
        return str(message) if message else None

    def _fail(self, error: ChatError) -> None:
        logger.error("Chat request failed ({}): {}", error.error_type, error)
        self.last_error = error
        self.last_outcome = RequestState.FAILED
        self.retry_available = True
        self._discard_placeholder()
        self._transition(RequestState.FAILED, error)
        self._transition(RequestState.IDLE)
        return None

    def _discard_placeholder(self) -> None:
        try:
            self.store.remove_placeholder()
        except Exception:
            # Placeholders are never persisted, so dropping it in memory is enough
            logger.exception("Could not persist placeholder removal")
            with self.store.suppress_persistence():
                self.store.remove_placeholder()

    def _transition(self, state: RequestState, error: ChatError | None = None) -> None:
        logger.debug("Request state {} -> {}", self.state.value, state.value)
        self.state = state
        for listener in list(self._listeners):
            listener(state, error)
