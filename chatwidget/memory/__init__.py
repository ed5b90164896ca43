"""Memory package: session identity, the conversation log and its persistence."""

from .conversation_store import ConversationStore  # noqa: F401
from .kv_store import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore, create_kv_store  # noqa: F401
from .persistence import PersistenceLayer  # noqa: F401
from .session_identity import SessionIdentity  # noqa: F401
