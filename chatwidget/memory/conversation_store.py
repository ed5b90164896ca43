"""Ordered, bounded message log for a single conversation.

The store is the source of truth both for what the presentation layer
shows and for what is sent to the remote endpoint.  Every mutation is
written through to the persistence layer (unless suppressed during a
bulk restore) and then announced to subscribers.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from loguru import logger

from ..models.chat_message import ChatMessage
from ..utils.error_handler import NoPlaceholderFound, RequestAlreadyInFlight
from .persistence import PersistenceLayer
from .session_identity import SessionIdentity

HistoryListener = Callable[[Tuple[ChatMessage, ...]], None]


class VisibleMessages:
    """Snapshot of the non-hidden messages taken at creation time.

    Iteration is lazy and may be repeated; later changes to the store
    are not reflected.
    """

    def __init__(self, snapshot: Sequence[ChatMessage]) -> None:
        self._snapshot = tuple(snapshot)

    def __iter__(self) -> Iterator[ChatMessage]:
        return (message for message in self._snapshot if not message.hidden_in_chat)

    def __len__(self) -> int:
        return sum(1 for _ in self)


class ConversationStore:
    """Append-only history capped at ``max_length`` entries.

    Invariants: at most one placeholder exists, and eviction removes the
    oldest non-placeholder entries from the front.  With
    ``keep_hidden_context`` hidden messages (such as a system preamble)
    are skipped by eviction too, unless nothing else is left to evict.

    Each mutation builds the new list, writes it through to persistence
    and only then commits it, so a failed write leaves memory unchanged.
    """

    def __init__(
        self,
        session: SessionIdentity,
        persistence: Optional[PersistenceLayer] = None,
        max_length: int = 100,
        keep_hidden_context: bool = False,
    ) -> None:
        self.session = session
        self.persistence = persistence
        self.max_length = max_length
        self.keep_hidden_context = keep_hidden_context
        self._messages: List[ChatMessage] = []
        self._listeners: List[HistoryListener] = []
        self._suppressed = False

    def __len__(self) -> int:
        return len(self._messages)

    # ------------------------------------------------------------------
    # Queries

    def all(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def visible(self) -> VisibleMessages:
        return VisibleMessages(self._messages)

    def has_placeholder(self) -> bool:
        return self._placeholder_index() is not None

    # ------------------------------------------------------------------
    # Mutations

    def append(self, message: ChatMessage) -> None:
        if message.pending and self.has_placeholder():
            raise RequestAlreadyInFlight("A reply is already pending")
        self._commit(self._messages + [message])

    def replace_placeholder(self, message: ChatMessage) -> None:
        """Swap the most recent placeholder for ``message`` in place.

        Raises:
            NoPlaceholderFound: If there is no placeholder; the history
                is left untouched.
        """
        index = self._placeholder_index()
        if index is None:
            raise NoPlaceholderFound("No placeholder to replace")
        messages = list(self._messages)
        messages[index] = message
        self._commit(messages)

    def remove_placeholder(self) -> bool:
        """Delete the most recent placeholder, returning whether one existed."""
        index = self._placeholder_index()
        if index is None:
            logger.debug("No placeholder to remove")
            return False
        messages = list(self._messages)
        del messages[index]
        self._commit(messages)
        return True

    def replace_all(self, messages: Sequence[ChatMessage]) -> None:
        """Swap the whole history, e.g. after a restore or a clear."""
        self._commit([message for message in messages if not message.pending])

    @contextmanager
    def suppress_persistence(self) -> Iterator[None]:
        """Skip persistence writes for mutations made inside the block."""
        previous, self._suppressed = self._suppressed, True
        try:
            yield
        finally:
            self._suppressed = previous

    def subscribe(self, listener: HistoryListener) -> Callable[[], None]:
        """Register ``listener`` for history changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Helpers

    def _placeholder_index(self) -> Optional[int]:
        for index in range(len(self._messages) - 1, -1, -1):
            if self._messages[index].pending:
                return index
        return None

    def _evict(self, messages: List[ChatMessage]) -> List[ChatMessage]:
        while len(messages) > self.max_length:
            candidates = [i for i, message in enumerate(messages) if not message.pending]
            if self.keep_hidden_context:
                unpinned = [i for i in candidates if not messages[i].hidden_in_chat]
                candidates = unpinned or candidates
            evicted = messages.pop(candidates[0])
            logger.trace("Evicted message from {}", evicted.timestamp)
        return messages

    def _commit(self, messages: List[ChatMessage]) -> None:
        messages = self._evict(messages)
        if self.persistence is not None and not self._suppressed:
            self.persistence.save(self.session.current(), messages)
        self._messages = messages
        snapshot = self.all()
        for listener in list(self._listeners):
            listener(snapshot)
