"""Shared fixtures: an in-memory store with the admin user, a fake completion function, the app and a client."""
import pytest
from fastapi.testclient import TestClient

from mcp_console.config import Settings
from mcp_console.main import create_app
from mcp_console.services.auth_service import hash_password
from mcp_console.services.storage import MemoryStore

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin"


class FakeCompletion:
    """Stands in for the provider adapter: records calls, returns a canned reply or raises."""

    def __init__(self, reply: str = "Hi there!"):
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[tuple[int, str, list]] = []

    async def __call__(self, provider_id, model, messages):
        self.calls.append((provider_id, model, list(messages)))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        jwt_secret="test-secret",
        storage_backend="memory",
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        completion_timeout_seconds=5,
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def admin(store):
    return store.create_user(ADMIN_USERNAME, hash_password(ADMIN_PASSWORD))


@pytest.fixture
def provider(store):
    return store.create_provider("OpenAI", "openai", "sk-test-abcd1234")


@pytest.fixture
def chat_session(store, admin, provider):
    return store.create_chat_session(admin.id, provider.id, "gpt-4o", title="Test chat")


@pytest.fixture
def fake_completion():
    return FakeCompletion()


@pytest.fixture
def app(settings, store, admin, fake_completion):
    return create_app(settings=settings, store=store, generate=fake_completion)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client):
    r = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    # Use the header only, so tests control auth explicitly
    client.cookies.clear()
    return {"Authorization": f"Bearer {r.json()['token']}"}
