import pytest
from fastapi.testclient import TestClient

from mcp_console.config import Settings
from mcp_console.core.errors import (
    MSG_AI_QUOTA_EXCEEDED,
    CompletionFailed,
    ProviderInactive,
    SessionNotFound,
    error_to_http,
)
from mcp_console.main import create_app
from mcp_console.services.admin_service import clear_chat_history, table_counts
from mcp_console.services.storage import MemoryStore, SqlStore, create_store


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["health"] == "/health"


def test_unknown_route_uses_message_shape(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.json() == {"message": "Not Found"}


def test_startup_requires_jwt_secret(store):
    settings = Settings(_env_file=None, jwt_secret="", storage_backend="memory")
    with pytest.raises(RuntimeError, match="JWT_SECRET"):
        with TestClient(create_app(settings=settings, store=store)):
            pass


def test_production_rejects_default_admin_credentials():
    settings = Settings(_env_file=None, jwt_secret="x", environment="production")
    assert settings.missing_secrets() == ["ADMIN_USERNAME", "ADMIN_PASSWORD"]
    assert settings.is_production


def test_cors_origins_from_settings():
    settings = Settings(_env_file=None, cors_origins=" https://a.example , ,https://b.example")
    assert settings.extra_cors_origins() == ["https://a.example", "https://b.example"]


def test_create_store_picks_backend():
    assert isinstance(create_store(Settings(_env_file=None, storage_backend="memory")), MemoryStore)
    assert isinstance(create_store(Settings(_env_file=None, storage_backend="database", database_url="sqlite://")), SqlStore)
    with pytest.raises(ValueError, match="STORAGE_BACKEND"):
        create_store(Settings(_env_file=None, storage_backend="redis"))


class TestErrorToHttp:
    def test_quota_errors_are_503(self):
        http = error_to_http(CompletionFailed("OpenAI request failed", cause=RuntimeError("Error code: 429")))
        assert http.status_code == 503
        assert http.detail == MSG_AI_QUOTA_EXCEEDED

    def test_plain_quota_error(self):
        assert error_to_http(RuntimeError("rate limit reached")).status_code == 503

    def test_console_errors_keep_their_status(self):
        assert error_to_http(SessionNotFound(3)).status_code == 404
        assert error_to_http(ProviderInactive("OpenAI")).detail == "Provider OpenAI is inactive"
        assert error_to_http(CompletionFailed("timed out")).status_code == 502

    def test_unknown_errors_are_500(self):
        http = error_to_http(RuntimeError("boom"))
        assert (http.status_code, http.detail) == (500, "boom")


def test_clear_chat_history_keeps_everything_else():
    store = SqlStore("sqlite://")
    store.create_tables()
    user = store.create_user("alice", "hashed")
    provider = store.create_provider("P", "openai", "k")
    session = store.create_chat_session(user.id, provider.id, "gpt-4o")
    store.create_chat_message(session.id, "user", "hi")
    store.create_chat_message(session.id, "assistant", "hello")

    with store.session() as db:
        deleted = clear_chat_history(db)
        counts = table_counts(db)

    assert deleted == {"chat_messages": 2, "chat_sessions": 1}
    assert counts["chat_messages"] == counts["chat_sessions"] == 0
    assert counts["users"] == counts["ai_providers"] == 1
