"""
Tool endpoint over HTTP. Auth is an access token (Bearer header or ?token=), not the dashboard session.

POST /api/mcp takes an envelope {method, path, data, headers} and answers {status, statusText, data}.
GET|POST /api/mcp/{path} map the HTTP request onto the same handler and answer with data only.
"""
import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from mcp_console.api.deps import bearer_token
from mcp_console.mcp import McpError, McpRequest, McpServer

router = APIRouter()
logger = logging.getLogger(__name__)


def _token(request: Request) -> str:
    return bearer_token(request) or request.query_params.get("token", "")


def _error(error: str, message: str, status: int) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": error, "message": message})


async def _dispatch(request: Request, mcp_request: McpRequest, *, envelope: bool) -> JSONResponse:
    token = _token(request)
    if not token:
        return _error("unauthorized", "Authorization token is required", 401)
    server: McpServer = request.app.state.mcp
    try:
        response = await server.handle(mcp_request, token)
    except McpError as e:
        return JSONResponse(status_code=e.status, content=e.to_dict())
    except Exception as e:
        logger.exception("Tool endpoint request failed: %s %s", mcp_request.method, mcp_request.path)
        return _error("internal_server_error", str(e) or "An unexpected error occurred", 500)
    content = response.to_dict() if envelope else response.data
    return JSONResponse(status_code=response.status, content=content)


@router.post("")
async def mcp_envelope(body: McpRequest, request: Request) -> JSONResponse:
    return await _dispatch(request, body, envelope=True)


@router.api_route("/{path:path}", methods=["GET", "POST"])
async def mcp_path(path: str, request: Request) -> JSONResponse:
    data = None
    if request.method == "POST":
        raw = await request.body()
        if raw:
            try:
                data = json.loads(raw)
            except ValueError:
                return _error("bad_request", "Request body must be JSON", 400)
    mcp_request = McpRequest(
        method=request.method,
        path="/" + path.strip("/"),
        data=data,
        headers=dict(request.headers),
    )
    return await _dispatch(request, mcp_request, envelope=False)
