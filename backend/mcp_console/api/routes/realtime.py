"""Realtime chat socket and its counters."""
from fastapi import APIRouter, Request, WebSocket

from mcp_console.core.constants import WS_PATH

router = APIRouter()


@router.websocket(WS_PATH)
async def realtime_socket(websocket: WebSocket) -> None:
    await websocket.app.state.gateway.serve(websocket)


@router.get("/api/realtime/stats")
def realtime_stats(request: Request) -> dict:
    stats = request.app.state.registry.stats()
    stats["pendingMessages"] = request.app.state.gateway.pending
    return stats
