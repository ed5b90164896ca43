from __future__ import annotations

import json

import httpx
import pytest

from chatwidget.config.app_config import AppConfig
from chatwidget.config.widget_config import WidgetConfig
from chatwidget.memory import FileKeyValueStore, InMemoryKeyValueStore
from chatwidget.memory.persistence import history_key
from chatwidget.memory.session_identity import LAST_SESSION_KEY
from chatwidget.models.enums import EnvelopeShape
from chatwidget.models.session import Session
from chatwidget.services.widget_service import ChatWidget, create_widget
from chatwidget.utils.error_handler import NothingToExport

ENDPOINT_URL = "http://chat.test/api/chat/send"


def _reply(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"status": "SUCCESS", "aiResponse": "hello"})


@pytest.mark.asyncio
async def test_history_survives_a_reload(widget_config, mock_client) -> None:
    store = InMemoryKeyValueStore()
    widget = ChatWidget(store, widget_config=widget_config, client=mock_client(_reply))
    await widget.send("hi")

    reloaded = ChatWidget(store, widget_config=widget_config)

    assert reloaded.session_id == widget.session_id
    assert [m.text for m in reloaded.visible()] == ["hi", "hello"]


def test_preamble_is_seeded_as_hidden_context() -> None:
    config = WidgetConfig(
        endpoint_url=ENDPOINT_URL,
        envelope=EnvelopeShape.GENERIC,
        system_preamble="You answer questions about Acme.",
    )

    widget = ChatWidget(InMemoryKeyValueStore(), widget_config=config)

    assert list(widget.visible()) == []
    (preamble,) = widget.conversation.all()
    assert preamble.hidden_in_chat
    assert preamble.text == "You answer questions about Acme."


def test_preamble_is_not_duplicated_on_reload() -> None:
    store = InMemoryKeyValueStore()
    config = WidgetConfig(endpoint_url=ENDPOINT_URL, system_preamble="context")

    ChatWidget(store, widget_config=config)
    reloaded = ChatWidget(store, widget_config=config)

    assert [m.text for m in reloaded.conversation.all()] == ["context"]


def test_corrupt_history_slot_starts_empty_with_preamble() -> None:
    store = InMemoryKeyValueStore()
    store.set(LAST_SESSION_KEY, Session(id="session_1_abcdefghi").model_dump_json(by_alias=True))
    store.set(history_key("session_1_abcdefghi"), "not json{")
    config = WidgetConfig(endpoint_url=ENDPOINT_URL, system_preamble="context")

    widget = ChatWidget(store, widget_config=config)

    assert widget.session_id == "session_1_abcdefghi"
    assert list(widget.visible()) == []
    (preamble,) = widget.conversation.all()
    assert preamble.hidden_in_chat and preamble.text == "context"


def test_corrupt_session_and_history_slots_start_a_fresh_session() -> None:
    store = InMemoryKeyValueStore()
    store.set(LAST_SESSION_KEY, "{garbage")
    store.set(history_key("session_1_abcdefghi"), "not json{")
    config = WidgetConfig(endpoint_url=ENDPOINT_URL, system_preamble="context")

    widget = ChatWidget(store, widget_config=config)

    assert widget.session_id.startswith("session_")
    assert widget.session_id != "session_1_abcdefghi"
    assert list(widget.visible()) == []
    assert [m.text for m in widget.conversation.all()] == ["context"]


@pytest.mark.asyncio
async def test_preamble_outlives_a_long_conversation(mock_client) -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "ok"}]}}]})

    config = WidgetConfig(
        endpoint_url=ENDPOINT_URL,
        envelope=EnvelopeShape.GENERIC,
        max_history_length=4,
        system_preamble="context",
    )
    widget = ChatWidget(InMemoryKeyValueStore(), widget_config=config, client=mock_client(handler))

    for text in ["one", "two", "three", "four"]:
        await widget.send(text)

    messages = widget.conversation.all()
    assert len(messages) == 4
    assert messages[0].hidden_in_chat and messages[0].text == "context"
    assert [m.text for m in messages[1:]] == ["ok", "four", "ok"]
    assert bodies[-1]["contents"][0]["parts"][0]["text"] == "context"


@pytest.mark.asyncio
async def test_clear_discards_history_and_regenerates_session(widget_config, mock_client) -> None:
    store = InMemoryKeyValueStore()
    widget = ChatWidget(store, widget_config=widget_config, client=mock_client(_reply))
    await widget.send("hi")
    old_session = widget.session_id

    new_session = widget.clear()

    assert new_session != old_session
    assert store.get(history_key(old_session)) is None
    assert list(widget.visible()) == []
    assert ChatWidget(store, widget_config=widget_config).session_id == new_session


@pytest.mark.asyncio
async def test_export_contains_visible_messages(widget_config, mock_client) -> None:
    widget = ChatWidget(InMemoryKeyValueStore(), widget_config=widget_config, client=mock_client(_reply))
    with pytest.raises(NothingToExport):
        widget.export()

    await widget.send("hi")
    document = widget.export()

    dumped = document.model_dump(mode="json", by_alias=True)
    assert dumped["sessionId"] == widget.session_id
    assert "exportDate" in dumped
    assert [m["text"] for m in dumped["messages"]] == ["hi", "hello"]
    assert document.filename.startswith(f"chatbot-export-{widget.session_id}-")


@pytest.mark.asyncio
async def test_stats_summarise_visible_history(widget_config, mock_client) -> None:
    widget = ChatWidget(InMemoryKeyValueStore(), widget_config=widget_config, client=mock_client(_reply))
    assert widget.stats().message_count == 0

    await widget.send("hi")
    stats = widget.stats()

    assert stats.message_count == 2
    assert stats.first_message_at <= stats.last_message_at


def test_create_widget_uses_configured_storage(tmp_path, widget_config) -> None:
    app_config = AppConfig(storage_type="file", storage_dir=str(tmp_path))

    widget = create_widget(app_config=app_config, widget_config=widget_config)

    assert isinstance(widget.kv_store, FileKeyValueStore)
    assert any(tmp_path.iterdir())
