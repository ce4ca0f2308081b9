"""Chat sessions (REST). Messages are sent over the realtime socket; history is read here."""
import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field

from mcp_console.api.deps import current_user, get_store
from mcp_console.core.errors import Forbidden, InvalidRequest, NotFound
from mcp_console.services.storage import ChatSessionRecord, Store, UserRecord

router = APIRouter()
logger = logging.getLogger(__name__)


class ChatCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    provider_id: int | None = Field(None, alias="providerId")
    model: str | None = None


def _owned_session(store: Store, session_id: int, user: UserRecord) -> ChatSessionRecord:
    session = store.get_chat_session(session_id)
    if session is None:
        raise NotFound("Chat session not found")
    if session.user_id != user.id:
        raise Forbidden("Forbidden")
    return session


@router.get("")
def list_chats(user: UserRecord = Depends(current_user), store: Store = Depends(get_store)) -> list[dict]:
    return [s.to_dict() for s in store.get_chat_sessions_by_user(user.id)]


@router.post("", status_code=201)
def create_chat(body: ChatCreate, user: UserRecord = Depends(current_user), store: Store = Depends(get_store)) -> dict:
    if not body.provider_id or not body.model:
        raise InvalidRequest("Provider ID and model are required")
    if store.get_provider(body.provider_id) is None:
        raise NotFound("Provider not found")
    session = store.create_chat_session(user.id, body.provider_id, body.model, title=body.title)
    logger.info("Chat session %s created for user %s", session.id, user.id)
    return session.to_dict()


@router.get("/{session_id}")
def get_chat(session_id: int, user: UserRecord = Depends(current_user), store: Store = Depends(get_store)) -> dict:
    session = _owned_session(store, session_id, user)
    return {
        "session": session.to_dict(),
        "messages": [m.to_dict() for m in store.get_chat_messages(session_id)],
    }


@router.delete("/{session_id}", status_code=204)
def delete_chat(session_id: int, user: UserRecord = Depends(current_user), store: Store = Depends(get_store)) -> Response:
    _owned_session(store, session_id, user)
    store.delete_chat_session(session_id)
    return Response(status_code=204)
