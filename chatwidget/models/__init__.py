"""Expose commonly used model classes at the package level.

Importing these classes here allows consumers to write concise imports like::

    from chatwidget.models import ChatMessage, Session, RequestState

These names refer to the underlying Pydantic models defined in their
respective modules.
"""

from .chat_message import ChatMessage  # noqa: F401
from .chat_request import CustomChatRequest, GenericChatRequest, SendMessageRequest  # noqa: F401
from .chat_response import ClearResult, HistoryView, SendResult  # noqa: F401
from .conversation import ConversationExport, SessionStats  # noqa: F401
from .enums import EnvelopeShape, MessageRole, RequestState  # noqa: F401
from .session import Session  # noqa: F401
