"""Access tokens for the tool endpoint. The full value is shown once, at creation."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from mcp_console.api.deps import current_user, get_store
from mcp_console.core.constants import DEFAULT_TOKEN_PERMISSIONS
from mcp_console.core.errors import Forbidden, InvalidRequest, NotFound
from mcp_console.services.auth_service import generate_token_value, token_expiry
from mcp_console.services.storage import Store, UserRecord

router = APIRouter()
logger = logging.getLogger(__name__)


class TokenCreate(BaseModel):
    name: str = ""
    expiry: int | None = None  # days; empty or <= 0 means no expiry
    permissions: str | None = None


@router.get("")
def list_tokens(user: UserRecord = Depends(current_user), store: Store = Depends(get_store)) -> list[dict]:
    return [t.to_dict() for t in store.get_tokens_by_user(user.id)]


@router.post("", status_code=201)
def create_token(body: TokenCreate, user: UserRecord = Depends(current_user), store: Store = Depends(get_store)) -> dict:
    if not body.name:
        raise InvalidRequest("Token name is required")
    token = store.create_token(
        user_id=user.id,
        name=body.name,
        token=generate_token_value(),
        permissions=body.permissions or DEFAULT_TOKEN_PERMISSIONS,
        expires_at=token_expiry(body.expiry),
    )
    logger.info("Access token %s (%s) created for user %s", token.id, token.name, user.id)
    return token.to_dict(reveal=True)


@router.post("/{token_id}/revoke")
def revoke_token(token_id: int, user: UserRecord = Depends(current_user), store: Store = Depends(get_store)) -> dict:
    token = store.get_token_by_id(token_id)
    if token is None:
        raise NotFound("Token not found")
    if token.user_id != user.id:
        raise Forbidden("Forbidden")
    store.revoke_token(token_id)
    logger.info("Access token %s revoked", token_id)
    return {"message": "Token revoked successfully"}
