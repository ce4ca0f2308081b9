"""Saved tools. Every change is mirrored into the app's ToolsRegistry so the tool endpoint lists it."""
import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from mcp_console.api.deps import current_user, get_store
from mcp_console.core.errors import Conflict, InvalidRequest, NotFound
from mcp_console.mcp import ToolsRegistry
from mcp_console.services.storage import Store, ToolRecord

router = APIRouter(dependencies=[Depends(current_user)])
logger = logging.getLogger(__name__)


class ToolCreate(BaseModel):
    name: str = ""
    description: str = ""
    type: str = ""
    endpoint: str = ""
    active: bool = True
    config: str | None = None


class ToolUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    type: str | None = None
    endpoint: str | None = None
    active: bool | None = None
    config: str | None = None


def _registry(request: Request) -> ToolsRegistry:
    return request.app.state.tools_registry


def _get_or_404(store: Store, tool_id: int) -> ToolRecord:
    tool = store.get_tool(tool_id)
    if tool is None:
        raise NotFound("Tool not found")
    return tool


@router.get("")
def list_tools(active: bool = False, store: Store = Depends(get_store)) -> list[dict]:
    return [t.to_dict() for t in store.get_tools(active_only=active)]


@router.get("/{tool_id}")
def get_tool(tool_id: int, store: Store = Depends(get_store)) -> dict:
    return _get_or_404(store, tool_id).to_dict()


@router.post("", status_code=201)
def create_tool(body: ToolCreate, request: Request, store: Store = Depends(get_store)) -> dict:
    if not body.name or not body.description or not body.type or not body.endpoint:
        raise InvalidRequest("Missing required fields")
    if store.get_tool_by_name(body.name):
        raise Conflict("Tool with this name already exists")
    if store.get_tool_by_endpoint(body.endpoint):
        raise Conflict("Tool with this endpoint already exists")
    created = store.create_tool(
        name=body.name,
        description=body.description,
        type=body.type,
        endpoint=body.endpoint,
        active=body.active,
        config=body.config or None,
    )
    _registry(request).sync(created)
    logger.info("Tool %s created (active=%s)", created.name, created.active)
    return created.to_dict()


@router.put("/{tool_id}")
def update_tool(tool_id: int, body: ToolUpdate, request: Request, store: Store = Depends(get_store)) -> dict:
    existing = _get_or_404(store, tool_id)
    updates = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    name = updates.get("name")
    if name is not None and name != existing.name and store.get_tool_by_name(name):
        raise Conflict("Tool with this name already exists")
    endpoint = updates.get("endpoint")
    if endpoint is not None and endpoint != existing.endpoint and store.get_tool_by_endpoint(endpoint):
        raise Conflict("Tool with this endpoint already exists")
    updated = store.update_tool(tool_id, **updates) or existing
    _registry(request).sync(updated, previous_name=existing.name)
    return updated.to_dict()


@router.delete("/{tool_id}", status_code=204)
def delete_tool(tool_id: int, request: Request, store: Store = Depends(get_store)) -> Response:
    existing = _get_or_404(store, tool_id)
    store.delete_tool(tool_id)
    _registry(request).deregister(existing.name)
    logger.info("Tool %s deleted", existing.name)
    return Response(status_code=204)
