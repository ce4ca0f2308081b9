"""
One ConnectionSession per accepted websocket.

send() never blocks the caller: frames go into a bounded queue drained by a writer task.
When a slow client lets the queue fill up, the oldest pending frame is dropped and counted.
"""
import asyncio
import itertools
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

logger = logging.getLogger(__name__)

DEFAULT_SEND_QUEUE_SIZE = 100

_ids = itertools.count(1)


@dataclass
class DeliveryStats:
    """Shared by all connections of one registry."""

    frames_sent: int = 0
    frames_dropped: int = 0


class ConnectionSession:
    def __init__(
        self,
        websocket: WebSocket,
        *,
        queue_size: int = DEFAULT_SEND_QUEUE_SIZE,
        stats: DeliveryStats | None = None,
    ) -> None:
        self.id = next(_ids)
        self.websocket = websocket
        # Chat this connection currently views (at most one); maintained by SubscriptionRegistry
        self.chat_id: int | None = None
        self.stats = stats or DeliveryStats()
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max(1, queue_size))
        self._writer: asyncio.Task | None = None
        self._closed = False

    def __repr__(self) -> str:
        return f"ConnectionSession(id={self.id}, chat_id={self.chat_id})"

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def start(self) -> None:
        """Start the writer task. Call once, after the websocket is accepted."""
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain(), name=f"ws-writer-{self.id}")

    def send(self, payload: dict[str, Any]) -> bool:
        """Queue a frame for delivery. Returns False when the connection is closed and the frame was skipped."""
        if not self.is_open:
            logger.debug("Skipping %s frame for closed connection %s", payload.get("type"), self.id)
            return False
        if self._queue.full():
            with suppress(asyncio.QueueEmpty):
                dropped = self._queue.get_nowait()
                self.stats.frames_dropped += 1
                logger.warning(
                    "Send queue full for connection %s; dropped oldest %s frame (%s dropped total)",
                    self.id, dropped.get("type"), self.stats.frames_dropped,
                )
        self._queue.put_nowait(payload)
        return True

    async def _drain(self) -> None:
        while True:
            payload = await self._queue.get()
            try:
                await self.websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.info("Connection %s went away while sending: %s", self.id, e)
                self._closed = True
                return
            except Exception:
                logger.exception("Send failed on connection %s; closing its writer", self.id)
                self._closed = True
                return
            self.stats.frames_sent += 1

    async def close(self) -> None:
        """Stop the writer. Frames still queued are discarded."""
        self._closed = True
        if self._writer is not None:
            self._writer.cancel()
            with suppress(asyncio.CancelledError):
                await self._writer
            self._writer = None
