"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable

import httpx
import pytest

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

# Keep the module-level ASGI app from touching the working directory
os.environ.setdefault("STORAGE_TYPE", "in_memory")

from chatwidget.config.widget_config import WidgetConfig  # noqa: E402
from chatwidget.memory import (  # noqa: E402
    ConversationStore,
    InMemoryKeyValueStore,
    PersistenceLayer,
    SessionIdentity,
)
from chatwidget.models.enums import EnvelopeShape  # noqa: E402

ENDPOINT_URL = "http://chat.test/api/chat/send"


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def session(kv_store) -> SessionIdentity:
    return SessionIdentity(kv_store)


@pytest.fixture
def persistence(kv_store) -> PersistenceLayer:
    return PersistenceLayer(kv_store, max_length=100)


@pytest.fixture
def conversation(session, persistence) -> ConversationStore:
    return ConversationStore(session, persistence=persistence, max_length=100)


@pytest.fixture
def widget_config() -> WidgetConfig:
    return WidgetConfig(endpoint_url=ENDPOINT_URL, envelope=EnvelopeShape.CUSTOM)


@pytest.fixture
def generic_config() -> WidgetConfig:
    return WidgetConfig(endpoint_url=ENDPOINT_URL, envelope=EnvelopeShape.GENERIC)


@pytest.fixture
def mock_client() -> Callable[[Callable], httpx.AsyncClient]:
    """Return a factory building an AsyncClient around a request handler."""

    def build(handler: Callable) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return build
