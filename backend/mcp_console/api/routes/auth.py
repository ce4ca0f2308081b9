"""Dashboard login. Registration is closed: the only user is the admin seeded at startup."""
import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from mcp_console.api.deps import current_user, get_settings, get_store
from mcp_console.config import Settings
from mcp_console.core.constants import SESSION_COOKIE_NAME
from mcp_console.core.errors import Forbidden
from mcp_console.services.auth_service import authenticate, create_session_token
from mcp_console.services.storage import Store, UserRecord

router = APIRouter()
logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/register")
def register() -> None:
    raise Forbidden("Registration is disabled on this server")


@router.post("/login")
def login(
    body: LoginRequest,
    response: Response,
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> dict:
    user = authenticate(store, body.username, body.password)
    token = create_session_token(user, settings)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    logger.info("User %s logged in", user.username)
    return {**user.to_dict(), "token": token}


@router.post("/logout")
def logout(response: Response) -> dict:
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"message": "Logged out"}


@router.get("/user")
def get_user(user: UserRecord = Depends(current_user)) -> dict:
    return user.to_dict()
