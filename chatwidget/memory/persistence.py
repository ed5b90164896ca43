"""Per-session persistence of the conversation history.

Each session owns one slot named ``chat_history_<session id>`` whose
value is a JSON array of message records.  Loading never fails the
caller: a missing slot is an empty history and an unreadable one is
logged and treated as empty.
"""

from __future__ import annotations

import json
from typing import Iterable, List

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from ..models.chat_message import ChatMessage
from ..utils.error_handler import PersistenceCorruption
from .kv_store import KeyValueStore

HISTORY_KEY_PREFIX = "chat_history_"

_records = TypeAdapter(List[ChatMessage])


def history_key(session_id: str) -> str:
    return f"{HISTORY_KEY_PREFIX}{session_id}"


class PersistenceLayer:
    """Serialises conversation history into namespaced key-value slots."""

    def __init__(self, store: KeyValueStore, max_length: int = 100) -> None:
        self.store = store
        self.max_length = max_length

    def save(self, session_id: str, history: Iterable[ChatMessage]) -> None:
        """Overwrite the session's slot with ``history``.

        Placeholders are dropped and the result is trimmed to the newest
        ``max_length`` records before writing.
        """
        records = [message.to_record() for message in history if not message.pending]
        if len(records) > self.max_length:
            records = records[-self.max_length:]
        self.store.set(history_key(session_id), json.dumps(records, ensure_ascii=False))
        logger.debug("Persisted {} messages for session {}", len(records), session_id)

    def load(self, session_id: str) -> list[ChatMessage]:
        """Return the stored history for ``session_id``.

        Missing slots yield an empty list.  Corrupt slots are logged as
        :class:`PersistenceCorruption` and also yield an empty list.
        """
        raw = self.store.get(history_key(session_id))
        if raw is None:
            return []
        try:
            return self._decode(raw)
        except PersistenceCorruption as exc:
            logger.warning("Discarding unreadable history for session {}: {}", session_id, exc)
            return []

    def clear(self, session_id: str) -> None:
        self.store.delete(history_key(session_id))
        logger.info("Cleared stored history for session {}", session_id)

    def _decode(self, raw: str) -> list[ChatMessage]:
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise PersistenceCorruption(f"invalid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise PersistenceCorruption(f"expected a list, found {type(data).__name__}")
        try:
            messages = _records.validate_python(data)
        except ValidationError as exc:
            raise PersistenceCorruption(f"invalid message record: {exc.error_count()} errors") from exc
        return messages[-self.max_length:]
