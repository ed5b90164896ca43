from __future__ import annotations

import json
from pathlib import Path

import pytest

from chatwidget.memory import FileKeyValueStore, PersistenceLayer, create_kv_store
from chatwidget.memory.persistence import history_key
from chatwidget.models import ChatMessage, MessageRole


def test_save_then_load_round_trips_without_placeholder(persistence) -> None:
    history = [
        ChatMessage.model("You are a helpful assistant.", hidden=True),
        ChatMessage.user("hi"),
        ChatMessage.model("hello"),
        ChatMessage.placeholder("thinking..."),
    ]

    persistence.save("session_1", history)
    loaded = persistence.load("session_1")

    assert [m.to_record() for m in loaded] == [m.to_record() for m in history[:3]]
    assert loaded[0].hidden_in_chat is True
    assert not any(m.pending for m in loaded)


def test_save_trims_before_writing(kv_store) -> None:
    persistence = PersistenceLayer(kv_store, max_length=3)
    persistence.save("s", [ChatMessage.user(str(i)) for i in range(5)])

    stored = json.loads(kv_store.get(history_key("s")))
    assert [record["text"] for record in stored] == ["2", "3", "4"]


def test_records_use_wire_field_names(persistence, kv_store) -> None:
    persistence.save("s", [ChatMessage.user("hi")])

    (record,) = json.loads(kv_store.get(history_key("s")))
    assert set(record) == {"role", "text", "hiddenInChat", "timestamp"}
    assert record["role"] == "user"


def test_missing_slot_loads_empty(persistence) -> None:
    assert persistence.load("never-saved") == []


@pytest.mark.parametrize(
    "raw",
    ["not json {", '{"role": "user"}', '[{"role": "robot", "text": "x"}]', "[1, 2]"],
)
def test_corrupt_slot_loads_empty(persistence, kv_store, raw: str) -> None:
    kv_store.set(history_key("s"), raw)

    assert persistence.load("s") == []


def test_sessions_are_isolated(persistence) -> None:
    persistence.save("a", [ChatMessage.user("for a")])
    persistence.save("b", [ChatMessage.user("for b")])

    assert [m.text for m in persistence.load("a")] == ["for a"]
    assert [m.text for m in persistence.load("b")] == ["for b"]


def test_clear_deletes_slot(persistence, kv_store) -> None:
    persistence.save("s", [ChatMessage.user("hi")])
    persistence.clear("s")

    assert kv_store.get(history_key("s")) is None
    assert persistence.load("s") == []


def test_legacy_sender_records_are_migrated(persistence, kv_store) -> None:
    legacy = [
        {"text": "hi", "sender": "user", "timestamp": "2024-01-01T00:00:00Z"},
        {"text": "hello", "sender": "ai", "timestamp": "2024-01-01T00:00:01Z"},
    ]
    kv_store.set(history_key("s"), json.dumps(legacy))

    loaded = persistence.load("s")
    assert [m.role for m in loaded] == [MessageRole.USER, MessageRole.MODEL]


def test_file_store_persists_across_instances(tmp_path: Path) -> None:
    first = PersistenceLayer(FileKeyValueStore(tmp_path), max_length=10)
    first.save("session_1_abc", [ChatMessage.user("hi")])

    second = PersistenceLayer(FileKeyValueStore(tmp_path), max_length=10)
    assert [m.text for m in second.load("session_1_abc")] == ["hi"]

    second.clear("session_1_abc")
    second.clear("session_1_abc")
    assert second.load("session_1_abc") == []


def test_unknown_storage_backend_fails() -> None:
    with pytest.raises(ValueError, match="Unsupported storage backend"):
        create_kv_store("redis")
