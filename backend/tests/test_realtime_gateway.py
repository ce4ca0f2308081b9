"""Websocket behaviour end to end through the app (TestClient)."""
import asyncio
import json
import threading

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketState

from mcp_console.main import create_app
from mcp_console.realtime import ConnectionSession, RealtimeGateway, SubscriptionRegistry
from mcp_console.services.chat_service import MessageProcessor
from mcp_console.services.completion import available_models, registry


def _ping(ws, timestamp):
    """Round-trip a ping; every frame sent before it on this socket has been handled once the pong is back."""
    ws.send_json({"type": "ping", "timestamp": timestamp})
    return ws.receive_json()


def _subscribe(ws, chat_id):
    ws.send_json({"type": "subscribe", "chatId": chat_id})
    assert _ping(ws, 0) == {"type": "pong", "timestamp": 0}


def test_ping_echoes_timestamp(client):
    with client.websocket_connect("/ws") as ws:
        assert _ping(ws, 1712345678901) == {"type": "pong", "timestamp": 1712345678901}
        assert _ping(ws, 3.25) == {"type": "pong", "timestamp": 3.25}


def test_chat_message_fans_out_to_subscribers_only(client, store, chat_session):
    sid = chat_session.id
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b, client.websocket_connect("/ws") as c:
        _subscribe(a, sid)
        _subscribe(b, sid)

        a.send_json({"type": "chat_message", "sessionId": sid, "content": "Hello"})

        for ws in (a, b):
            first, second = ws.receive_json(), ws.receive_json()
            assert first["type"] == second["type"] == "chat_message"
            assert first["sessionId"] == second["sessionId"] == sid
            assert (first["message"]["role"], first["message"]["content"]) == ("user", "Hello")
            assert (second["message"]["role"], second["message"]["content"]) == ("assistant", "Hi there!")

        # c never subscribed: the next frame it sees is its own pong
        assert _ping(c, 7) == {"type": "pong", "timestamp": 7}

    assert [m.role for m in store.get_chat_messages(sid)] == ["user", "assistant"]


def test_sender_not_subscribed_still_triggers_broadcast(client, chat_session):
    sid = chat_session.id
    with client.websocket_connect("/ws") as viewer, client.websocket_connect("/ws") as sender:
        _subscribe(viewer, sid)
        sender.send_json({"type": "chat_message", "sessionId": sid, "content": "From outside"})

        assert viewer.receive_json()["message"]["content"] == "From outside"
        assert viewer.receive_json()["message"]["role"] == "assistant"
        assert _ping(sender, 1) == {"type": "pong", "timestamp": 1}


@pytest.mark.parametrize("content", ["", "   "])
def test_empty_content_gets_error_and_no_writes(client, store, chat_session, fake_completion, content):
    sid = chat_session.id
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        _subscribe(a, sid)
        _subscribe(b, sid)

        a.send_json({"type": "chat_message", "sessionId": sid, "content": content})

        assert a.receive_json() == {"type": "error", "message": "Message content cannot be empty"}
        assert _ping(b, 2) == {"type": "pong", "timestamp": 2}

    assert store.get_chat_messages(sid) == []
    assert fake_completion.calls == []


def test_completion_failure_goes_to_sender_only(client, store, chat_session, fake_completion):
    fake_completion.error = RuntimeError("quota exhausted")
    sid = chat_session.id
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        _subscribe(a, sid)
        _subscribe(b, sid)

        a.send_json({"type": "chat_message", "sessionId": sid, "content": "Hello"})

        assert a.receive_json() == {"type": "error", "message": "Failed to process message: quota exhausted"}
        assert _ping(b, 3) == {"type": "pong", "timestamp": 3}

    # The user turn is kept
    assert [(m.role, m.content) for m in store.get_chat_messages(sid)] == [("user", "Hello")]


def test_unknown_session_gets_error(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "chat_message", "sessionId": 999, "content": "Hello"})
        assert ws.receive_json() == {
            "type": "error",
            "message": "Failed to process message: Chat session with ID 999 not found",
        }


def test_malformed_frames_are_dropped_silently(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        ws.send_text("[1, 2]")
        ws.send_json({"type": "dance"})
        ws.send_json({"type": "subscribe"})
        ws.send_json({"type": "chat_message", "sessionId": 1})
        # Connection survives and nothing was answered
        assert _ping(ws, 5) == {"type": "pong", "timestamp": 5}


def test_unsubscribe_stops_delivery(client, chat_session):
    sid = chat_session.id
    with client.websocket_connect("/ws") as viewer, client.websocket_connect("/ws") as sender:
        _subscribe(viewer, sid)
        viewer.send_json({"type": "unsubscribe", "chatId": sid})
        _ping(viewer, 0)
        _subscribe(sender, sid)

        sender.send_json({"type": "chat_message", "sessionId": sid, "content": "Hello"})
        assert sender.receive_json()["message"]["role"] == "user"
        assert sender.receive_json()["message"]["role"] == "assistant"

        assert _ping(viewer, 9) == {"type": "pong", "timestamp": 9}


def test_resubscribe_moves_viewer_to_new_chat(client, store, admin, provider, chat_session):
    other = store.create_chat_session(admin.id, provider.id, "gpt-4o")
    with client.websocket_connect("/ws") as viewer, client.websocket_connect("/ws") as sender:
        _subscribe(viewer, chat_session.id)
        _subscribe(viewer, other.id)
        _subscribe(sender, chat_session.id)

        sender.send_json({"type": "chat_message", "sessionId": chat_session.id, "content": "old chat"})
        sender.receive_json()
        sender.receive_json()

        assert _ping(viewer, 4) == {"type": "pong", "timestamp": 4}


def test_disconnect_removes_subscriptions(client, app, chat_session):
    with client.websocket_connect("/ws") as ws:
        _subscribe(ws, chat_session.id)
        stats = client.get("/api/realtime/stats").json()
        assert stats["connections"] == 1
        assert stats["subscriptions"] == 1

    # The server side finishes its cleanup after the client closes
    for _ in range(50):
        stats = client.get("/api/realtime/stats").json()
        if stats["connections"] == 0:
            break
    assert stats["connections"] == 0
    assert stats["subscriptions"] == 0
    assert app.state.registry.subscribers(chat_session.id) == frozenset()


def test_end_to_end_through_provider_adapter(settings, store, admin, monkeypatch):
    """Real adapter path: session -> provider (openai kind) -> vendor client."""
    seen = []

    async def fake_openai(api_key, model, messages, *, temperature, max_tokens):
        seen.append((api_key, model, [(m.role, m.content) for m in messages]))
        return "Hello back"

    monkeypatch.setitem(registry._kinds, "openai", (fake_openai, available_models("openai")))
    provider = store.create_provider("OpenAI", "openai", "sk-e2e")
    session = store.create_chat_session(admin.id, provider.id, "gpt-4o")

    with TestClient(create_app(settings=settings, store=store)) as client:
        with client.websocket_connect("/ws") as ws:
            _subscribe(ws, session.id)
            ws.send_json({"type": "chat_message", "sessionId": session.id, "content": "Hello"})
            user_frame, assistant_frame = ws.receive_json(), ws.receive_json()

    assert user_frame["sessionId"] == assistant_frame["sessionId"] == session.id
    assert user_frame["message"]["content"] == "Hello"
    assert assistant_frame["message"]["content"] == "Hello back"
    assert seen == [("sk-e2e", "gpt-4o", [("user", "Hello")])]
    assert [(m.role, m.content) for m in store.get_chat_messages(session.id)] == [
        ("user", "Hello"),
        ("assistant", "Hello back"),
    ]


class _OpenSocket:
    client_state = WebSocketState.CONNECTED
    application_state = WebSocketState.CONNECTED

    def __init__(self):
        self.sent = []

    async def send_json(self, data):
        self.sent.append(data)


def _gated_completion(gate: threading.Event):
    async def generate(provider_id, model, messages):
        while not gate.is_set():
            await asyncio.sleep(0.01)
        return "Done thinking"

    return generate


def test_pings_and_subscribes_answered_during_slow_completion(settings, store, admin, chat_session):
    gate = threading.Event()
    app = create_app(settings=settings, store=store, generate=_gated_completion(gate))
    sid = chat_session.id

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as sender, client.websocket_connect("/ws") as late:
            _subscribe(sender, sid)
            sender.send_json({"type": "chat_message", "sessionId": sid, "content": "Hello"})

            # The completion is still blocked; the same connection keeps getting answers
            assert _ping(sender, 11) == {"type": "pong", "timestamp": 11}
            _subscribe(late, sid)
            assert client.get("/api/realtime/stats").json()["pendingMessages"] == 1

            gate.set()
            for ws in (sender, late):
                assert [ws.receive_json()["message"]["role"] for _ in range(2)] == ["user", "assistant"]


async def test_shutdown_cancels_pending_chat_messages(store, chat_session):
    started = asyncio.Event()

    async def hung(provider_id, model, messages):
        started.set()
        await asyncio.Event().wait()

    processor = MessageProcessor(store, hung)
    gateway = RealtimeGateway(SubscriptionRegistry(), processor)
    conn = ConnectionSession(_OpenSocket())
    conn.start()

    gateway.handle_frame(conn, json.dumps({"type": "chat_message", "sessionId": chat_session.id, "content": "Hello"}))
    await asyncio.wait_for(started.wait(), timeout=1)
    assert gateway.pending == 1
    assert len(processor.locks) == 1

    await gateway.shutdown()

    assert gateway.pending == 0
    assert len(processor.locks) == 0
    assert [m.role for m in store.get_chat_messages(chat_session.id)] == ["user"]
    await conn.close()

