"""Request dependencies: app-scoped services from app.state and the logged-in dashboard user."""
from fastapi import Depends, Request

from mcp_console.config import Settings
from mcp_console.core.constants import SESSION_COOKIE_NAME
from mcp_console.core.errors import Unauthorized
from mcp_console.services.auth_service import decode_session_token
from mcp_console.services.storage import Store, UserRecord


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def bearer_token(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth[:7].lower() == "bearer ":
        return auth[7:].strip()
    return ""


def current_user(
    request: Request,
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> UserRecord:
    """Dashboard user from the session JWT (Bearer header first, then the session cookie)."""
    token = bearer_token(request) or request.cookies.get(SESSION_COOKIE_NAME, "")
    if not token:
        raise Unauthorized("Unauthorized")
    user = store.get_user(decode_session_token(token, settings))
    if user is None:
        raise Unauthorized("Unauthorized")
    return user
