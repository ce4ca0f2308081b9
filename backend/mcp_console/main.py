"""
FastAPI app entrypoint.

Dashboard REST API under /api, the realtime chat socket at /ws, and the token-authenticated
tool endpoint under /api/mcp.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

# Load .env from backend/ before settings are read
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from mcp_console.api.routes import auth, chats, mcp, providers, realtime, tokens, tools
from mcp_console.config import Settings, settings as default_settings
from mcp_console.core.errors import MSG_INTERNAL_ERROR, ConsoleError, error_to_http
from mcp_console.mcp import McpServer, ToolsRegistry
from mcp_console.realtime import RealtimeGateway, SubscriptionRegistry
from mcp_console.services.auth_service import ensure_admin_user
from mcp_console.services.chat_service import CompletionFn, MessageProcessor
from mcp_console.services.storage import Store, create_store

logger = logging.getLogger(__name__)

# Dev origins; CORS_ORIGINS (comma-separated) adds production frontends
_DEV_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def _load_tools(store: Store) -> ToolsRegistry:
    registry = ToolsRegistry()
    active = store.get_tools(active_only=True)
    for tool in active:
        registry.register_from_record(tool)
    logger.info("Tool registry ready: %s built-in/saved tools (%s active saved)", len(registry.all()), len(active))
    return registry


def create_app(
    settings: Settings | None = None,
    store: Store | None = None,
    generate: CompletionFn | None = None,
) -> FastAPI:
    """
    Build the app. Tests pass their own settings, store and a fake completion function;
    otherwise the store comes from STORAGE_BACKEND and completions go to the real vendors.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        missing = settings.missing_secrets()
        if missing:
            raise RuntimeError(f"Missing required secrets: {', '.join(missing)}. Set them in backend/.env or the environment.")

        app_store = store or create_store(settings)
        ensure_admin_user(app_store, settings)

        registry = SubscriptionRegistry()
        processor = MessageProcessor(
            app_store,
            generate,
            timeout_seconds=settings.completion_timeout_seconds,
            temperature=settings.default_temperature,
        )
        gateway = RealtimeGateway(registry, processor, send_queue_size=settings.ws_send_queue_size)
        tools_registry = _load_tools(app_store)

        app.state.settings = settings
        app.state.store = app_store
        app.state.registry = registry
        app.state.processor = processor
        app.state.gateway = gateway
        app.state.tools_registry = tools_registry
        app.state.mcp = McpServer(app_store, tools_registry)

        logger.info("Backend ready (storage=%s, environment=%s)", settings.storage_backend, settings.environment)
        yield
        await gateway.shutdown()
        logger.info("Backend stopped")

    app = FastAPI(title="MCP Console", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_DEV_CORS_ORIGINS + settings.extra_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ConsoleError)
    async def console_error_handler(request: Request, exc: ConsoleError) -> JSONResponse:
        http = error_to_http(exc)
        return JSONResponse(status_code=http.status_code, content={"message": http.detail})

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"message": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": MSG_INTERNAL_ERROR})

    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(providers.router, prefix="/api/providers", tags=["providers"])
    app.include_router(tools.router, prefix="/api/tools", tags=["tools"])
    app.include_router(tokens.router, prefix="/api/tokens", tags=["tokens"])
    app.include_router(chats.router, prefix="/api/chats", tags=["chats"])
    app.include_router(mcp.router, prefix="/api/mcp", tags=["mcp"])
    app.include_router(realtime.router, tags=["realtime"])

    @app.get("/", include_in_schema=False)
    def root():
        return {"message": "MCP Console API", "docs": "/docs", "health": "/health"}

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    """Console entry point: mcp-console."""
    import uvicorn

    logging.basicConfig(
        level=default_settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("mcp_console.main:app", host="0.0.0.0", port=8000)
