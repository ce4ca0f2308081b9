"""
AI provider management. API keys never leave the server in full (see ProviderRecord.to_dict).
"""
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from mcp_console.api.deps import current_user, get_store
from mcp_console.core.constants import ROLE_SYSTEM, ROLE_USER
from mcp_console.core.errors import Conflict, InvalidRequest, NotFound, UnsupportedProvider, error_to_http
from mcp_console.services.completion import CompletionMessage, available_models, list_kinds
from mcp_console.services.storage import ProviderRecord, Store

router = APIRouter(dependencies=[Depends(current_user)])
logger = logging.getLogger(__name__)

TEST_SYSTEM_PROMPT = "You are a helpful assistant responding to a test message."
DEFAULT_TEST_MESSAGE = "Hello, this is a test message."


class ProviderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    provider: str = ""
    api_key: str = Field("", alias="apiKey")
    active: bool = True


class ProviderUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    provider: str | None = None
    api_key: str | None = Field(None, alias="apiKey")
    active: bool | None = None


class ProviderTestRequest(BaseModel):
    message: str = DEFAULT_TEST_MESSAGE


def _kind(value: str) -> str:
    kind = value.strip().lower()
    if kind not in list_kinds():
        raise UnsupportedProvider(value)
    return kind


def _get_or_404(store: Store, provider_id: int) -> ProviderRecord:
    provider = store.get_provider(provider_id)
    if provider is None:
        raise NotFound("Provider not found")
    return provider


@router.get("")
def list_providers(store: Store = Depends(get_store)) -> list[dict]:
    return [p.to_dict() for p in store.get_providers()]


@router.get("/{provider_id}")
def get_provider(provider_id: int, store: Store = Depends(get_store)) -> dict:
    return _get_or_404(store, provider_id).to_dict()


@router.post("", status_code=201)
def create_provider(body: ProviderCreate, store: Store = Depends(get_store)) -> dict:
    if not body.name or not body.provider or not body.api_key:
        raise InvalidRequest("Missing required fields")
    if store.get_provider_by_name(body.name):
        raise Conflict("Provider with this name already exists")
    created = store.create_provider(body.name, _kind(body.provider), body.api_key, body.active)
    logger.info("Provider %s (%s) created", created.name, created.provider)
    return created.to_dict()


@router.put("/{provider_id}")
def update_provider(provider_id: int, body: ProviderUpdate, store: Store = Depends(get_store)) -> dict:
    existing = _get_or_404(store, provider_id)
    updates = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if updates.get("name") and updates["name"] != existing.name and store.get_provider_by_name(updates["name"]):
        raise Conflict("Provider with this name already exists")
    if "provider" in updates:
        updates["provider"] = _kind(updates["provider"])
    updated = store.update_provider(provider_id, **updates)
    return (updated or existing).to_dict()


@router.delete("/{provider_id}", status_code=204)
def delete_provider(provider_id: int, store: Store = Depends(get_store)) -> Response:
    _get_or_404(store, provider_id)
    store.delete_provider(provider_id)
    return Response(status_code=204)


@router.get("/{provider_id}/models")
def provider_models(provider_id: int, store: Store = Depends(get_store)) -> list[dict]:
    provider = _get_or_404(store, provider_id)
    return [m.to_dict() for m in available_models(provider.provider)]


@router.post("/{provider_id}/test")
async def test_provider(
    provider_id: int,
    request: Request,
    body: ProviderTestRequest | None = None,
    store: Store = Depends(get_store),
):
    """Send one short exchange through the provider's first model and report the outcome."""
    provider = _get_or_404(store, provider_id)
    if not provider.active:
        return JSONResponse(status_code=400, content={"success": False, "message": "Provider is not active"})
    if not provider.api_key:
        return JSONResponse(status_code=400, content={"success": False, "message": "Provider has no API key configured"})
    models = available_models(provider.provider)
    if not models:
        return JSONResponse(status_code=400, content={"success": False, "message": "No models available for this provider"})

    message = (body or ProviderTestRequest()).message
    generate = request.app.state.processor.generate
    try:
        reply = await generate(
            provider.id,
            models[0].id,
            [CompletionMessage(role=ROLE_SYSTEM, content=TEST_SYSTEM_PROMPT), CompletionMessage(role=ROLE_USER, content=message)],
        )
    except Exception as e:
        logger.exception("Provider test failed for %s", provider.name)
        http = error_to_http(e)
        return JSONResponse(status_code=http.status_code, content={"success": False, "message": http.detail})

    return {
        "success": True,
        "message": "Connection test successful",
        "available_models": [m.to_dict() for m in models],
        "test_response": reply,
    }
