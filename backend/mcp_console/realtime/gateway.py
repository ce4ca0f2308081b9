"""
Realtime gateway: one receive loop per websocket.

subscribe / unsubscribe / ping are handled inline. chat_message runs as a task so the same
connection keeps getting pongs while a completion is in flight; per-chat ordering comes from the
MessageProcessor's session lock, not from this loop.
"""
import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from mcp_console.core.constants import MSG_EMPTY_CONTENT, MSG_PROCESS_FAILED
from mcp_console.core.errors import MalformedFrame
from mcp_console.realtime.connection import DEFAULT_SEND_QUEUE_SIZE, ConnectionSession
from mcp_console.realtime.frames import (
    ChatMessageFrame,
    PingFrame,
    SubscribeFrame,
    UnsubscribeFrame,
    chat_message_frame,
    error_frame,
    parse_frame,
    pong_frame,
)
from mcp_console.realtime.registry import SubscriptionRegistry
from mcp_console.services.chat_service import MessageProcessor

logger = logging.getLogger(__name__)


class RealtimeGateway:
    def __init__(
        self,
        registry: SubscriptionRegistry,
        processor: MessageProcessor,
        *,
        send_queue_size: int = DEFAULT_SEND_QUEUE_SIZE,
    ) -> None:
        self.registry = registry
        self.processor = processor
        self._send_queue_size = send_queue_size
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def serve(self, websocket: WebSocket) -> None:
        await websocket.accept()
        conn = ConnectionSession(websocket, queue_size=self._send_queue_size, stats=self.registry.delivery)
        conn.start()
        self.registry.connect(conn)
        logger.info("Realtime client %s connected", conn.id)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                self.handle_frame(conn, raw)
        except WebSocketDisconnect:
            pass
        finally:
            self.registry.drop_connection(conn)
            await conn.close()
            logger.info("Realtime client %s disconnected", conn.id)

    def handle_frame(self, conn: ConnectionSession, raw: str | bytes | None) -> None:
        try:
            frame = parse_frame(raw)
        except MalformedFrame as e:
            logger.warning("Dropping malformed frame from connection %s: %s", conn.id, e.message)
            return

        if isinstance(frame, SubscribeFrame):
            self.registry.subscribe(conn, frame.chat_id)
        elif isinstance(frame, UnsubscribeFrame):
            self.registry.unsubscribe(conn, frame.chat_id)
        elif isinstance(frame, PingFrame):
            conn.send(pong_frame(frame.timestamp))
        elif isinstance(frame, ChatMessageFrame):
            if not frame.content.strip():
                conn.send(error_frame(MSG_EMPTY_CONTENT))
                return
            task = asyncio.create_task(
                self._process_chat_message(conn, frame.session_id, frame.content),
                name=f"chat-message-{frame.session_id}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _process_chat_message(self, conn: ConnectionSession, session_id: int, content: str) -> None:
        try:
            exchange = await self.processor.process_user_message(session_id, content)
        except Exception as e:
            # Errors go back to the sender only; nothing is broadcast
            logger.warning("Chat message for session %s from connection %s failed: %s", session_id, conn.id, e, exc_info=True)
            conn.send(error_frame(MSG_PROCESS_FAILED.format(cause=e)))
            return
        self.registry.broadcast(session_id, chat_message_frame(exchange.user_message))
        self.registry.broadcast(session_id, chat_message_frame(exchange.assistant_message))

    async def shutdown(self) -> None:
        """Cancel chat messages still being processed (app shutdown)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %s pending chat message task(s)", len(tasks))
