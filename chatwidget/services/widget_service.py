"""The per-widget context tying session, history and request lifecycle together.

One :class:`ChatWidget` exists per widget instantiation.  It is passed
explicitly to whoever presents it; nothing here is a process-wide
singleton.
"""

from __future__ import annotations

import httpx
from loguru import logger

from ..config.app_config import AppConfig, get_app_config
from ..config.widget_config import WidgetConfig, get_widget_config
from ..memory.conversation_store import ConversationStore, VisibleMessages
from ..memory.kv_store import KeyValueStore, create_kv_store
from ..memory.persistence import PersistenceLayer
from ..memory.session_identity import SessionIdentity
from ..models.chat_message import ChatMessage
from ..models.conversation import ConversationExport, SessionStats
from ..utils.error_handler import NothingToExport, RequestAlreadyInFlight
from .chat_service import RequestLifecycleController


class ChatWidget:
    """Session, conversation store and controller for one widget.

    On construction the last session is restored (or a new one
    created), its history is loaded without triggering a write, and the
    configured system preamble is seeded into an empty history as a
    hidden message.  Hidden messages are kept when the history is
    trimmed, so the preamble outlives long conversations.
    """

    def __init__(
        self,
        store: KeyValueStore,
        widget_config: WidgetConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.widget_config = widget_config or get_widget_config()
        self.kv_store = store
        self.session = SessionIdentity(store)
        self.persistence = PersistenceLayer(store, max_length=self.widget_config.max_history_length)
        self.conversation = ConversationStore(
            self.session,
            persistence=self.persistence,
            max_length=self.widget_config.max_history_length,
            keep_hidden_context=True,
        )
        self.controller = RequestLifecycleController(
            self.conversation,
            widget_config=self.widget_config,
            client=client,
        )
        self._restore()

    @property
    def session_id(self) -> str:
        return self.session.current()

    async def send(self, text: str) -> ChatMessage | None:
        return await self.controller.send(text)

    async def retry(self) -> ChatMessage | None:
        return await self.controller.retry()

    def visible(self) -> VisibleMessages:
        return self.conversation.visible()

    def clear(self) -> str:
        """Discard the history and start a new session, returning its id."""
        if self.controller.in_flight:
            raise RequestAlreadyInFlight("Cannot clear while a request is in flight")
        self.persistence.clear(self.session.current())
        self.session.regenerate()
        self.controller.retry_available = False
        self.controller.last_error = None
        with self.conversation.suppress_persistence():
            self.conversation.replace_all([])
        self._seed_preamble()
        logger.info("Chat history cleared; new session {}", self.session_id)
        return self.session_id

    def export(self) -> ConversationExport:
        messages = [message for message in self.visible() if not message.pending]
        if not messages:
            raise NothingToExport("No chat history to export.")
        return ConversationExport(session_id=self.session_id, messages=messages)

    def stats(self) -> SessionStats:
        messages = [message for message in self.visible() if not message.pending]
        if not messages:
            return SessionStats(session_id=self.session_id)
        return SessionStats(
            session_id=self.session_id,
            message_count=len(messages),
            first_message_at=messages[0].timestamp,
            last_message_at=messages[-1].timestamp,
        )

    def _restore(self) -> None:
        history = self.persistence.load(self.session_id)
        with self.conversation.suppress_persistence():
            self.conversation.replace_all(history)
        logger.info("Restored {} messages for session {}", len(history), self.session_id)
        self._seed_preamble()

    def _seed_preamble(self) -> None:
        preamble = self.widget_config.system_preamble
        if preamble and len(self.conversation) == 0:
            self.conversation.append(ChatMessage.model(preamble, hidden=True))


def create_widget(
    app_config: AppConfig | None = None,
    widget_config: WidgetConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> ChatWidget:
    """Build a :class:`ChatWidget` backed by the configured storage."""
    app_config = app_config or get_app_config()
    kwargs = {"root": app_config.storage_dir} if app_config.storage_type == "file" else {}
    store = create_kv_store(app_config.storage_type, **kwargs)
    logger.debug("Using {} storage for chat history", store.backend_type)
    return ChatWidget(store, widget_config=widget_config, client=client)
