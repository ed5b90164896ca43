"""Session identity: generation, restore and regeneration of the session id."""

from __future__ import annotations

from loguru import logger
from pydantic import ValidationError

from ..models.session import Session, generate_session_id
from .kv_store import KeyValueStore

LAST_SESSION_KEY = "chatbot_last_session"


class SessionIdentity:
    """Owns the active :class:`Session` for one widget instance.

    The active session is remembered in a fixed slot so a reload picks
    up the same conversation.  A regenerated session always gets a
    fresh id; previous ids are never reused.
    """

    def __init__(self, store: KeyValueStore | None = None, restore: bool = True) -> None:
        self.store = store
        self._session = self._restore() if restore else None
        if self._session is None:
            self._session = Session()
            self._remember()
        logger.info("Session id: {}", self._session.id)

    @staticmethod
    def generate() -> str:
        return generate_session_id()

    def current(self) -> str:
        return self._session.id

    @property
    def session(self) -> Session:
        return self._session

    def regenerate(self) -> Session:
        previous = self._session.id
        session = Session()
        while session.id == previous:
            session = Session()
        self._session = session
        self._remember()
        logger.info("Session {} replaced by {}", previous, session.id)
        return session

    def _remember(self) -> None:
        if self.store is not None:
            self.store.set(LAST_SESSION_KEY, self._session.model_dump_json(by_alias=True))

    def _restore(self) -> Session | None:
        if self.store is None:
            return None
        raw = self.store.get(LAST_SESSION_KEY)
        if raw is None:
            return None
        try:
            return Session.model_validate_json(raw)
        except ValidationError:
            # Older widgets stored the bare id string
            candidate = raw.strip().strip('"')
            if candidate.startswith("session_"):
                return Session(id=candidate)
            logger.warning("Ignoring unreadable stored session: {!r}", raw[:80])
            return None
