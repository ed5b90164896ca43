from __future__ import annotations

import httpx
from fastapi.testclient import TestClient

from chatwidget.config.app_config import AppConfig
from chatwidget.main import create_app
from chatwidget.memory import InMemoryKeyValueStore
from chatwidget.services.widget_service import ChatWidget


def _client(widget_config, handler) -> tuple[TestClient, ChatWidget]:
    widget = ChatWidget(
        InMemoryKeyValueStore(),
        widget_config=widget_config,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    app = create_app(widget=widget, app_config=AppConfig(storage_type="in_memory"))
    return TestClient(app), widget


def test_health(widget_config) -> None:
    client, _ = _client(widget_config, lambda request: httpx.Response(200))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_send_and_list_messages(widget_config) -> None:
    client, widget = _client(
        widget_config,
        lambda request: httpx.Response(200, json={"status": "SUCCESS", "aiResponse": "**Hi** there"}),
    )

    sent = client.post("/widget/messages", json={"text": "hello"})
    listed = client.get("/widget/messages")

    assert sent.status_code == 200
    assert sent.json()["reply"]["text"] == "Hi there"
    assert sent.json()["state"] == "succeeded"
    body = listed.json()
    assert body["session_id"] == widget.session_id
    assert body["state"] == "idle"
    assert [m["text"] for m in body["messages"]] == ["hello", "Hi there"]
    assert "pending" not in body["messages"][0]


def test_failed_send_offers_retry(widget_config) -> None:
    responses = [
        httpx.Response(500),
        httpx.Response(200, json={"status": "SUCCESS", "aiResponse": "recovered"}),
    ]
    client, _ = _client(widget_config, lambda request: responses.pop(0))

    failed = client.post("/widget/messages", json={"text": "hello"})

    assert failed.status_code == 200
    assert failed.json()["reply"] is None
    assert failed.json()["error_type"] == "transport"
    assert failed.json()["retry_available"] is True
    assert [m["text"] for m in client.get("/widget/messages").json()["messages"]] == ["hello"]

    retried = client.post("/widget/retry")

    assert retried.json()["reply"]["text"] == "recovered"
    assert retried.json()["retry_available"] is False


def test_rejections_map_to_status_codes(widget_config) -> None:
    client, _ = _client(widget_config, lambda request: httpx.Response(200, json={"status": "SUCCESS"}))

    empty = client.post("/widget/messages", json={"text": "   "})
    too_long = client.post("/widget/messages", json={"text": "x" * 1001})
    retry = client.post("/widget/retry")
    export = client.get("/widget/export")

    assert empty.status_code == 422
    assert empty.json()["error_type"] == "empty_input"
    assert too_long.status_code == 422
    assert too_long.json()["error_type"] == "message_too_long"
    assert retry.status_code == 409
    assert export.status_code == 404


def test_clear_export_and_stats(widget_config) -> None:
    client, widget = _client(
        widget_config,
        lambda request: httpx.Response(200, json={"status": "SUCCESS", "aiResponse": "hello"}),
    )
    client.post("/widget/messages", json={"text": "hi"})
    old_session = widget.session_id

    exported = client.get("/widget/export").json()
    stats = client.get("/widget/stats").json()
    cleared = client.delete("/widget/messages").json()

    assert exported["sessionId"] == old_session
    assert [m["text"] for m in exported["messages"]] == ["hi", "hello"]
    assert stats["message_count"] == 2
    assert cleared["session_id"] != old_session
    assert client.get("/widget/messages").json()["messages"] == []
