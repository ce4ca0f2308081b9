"""
Chat id -> set of connections currently viewing that chat.

One instance per app (app.state.registry). Every method is synchronous, so each call is atomic
with respect to other frames handled on the event loop.
"""
import logging
from typing import Any

from mcp_console.realtime.connection import ConnectionSession, DeliveryStats

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    def __init__(self) -> None:
        self._subscribers: dict[int, set[ConnectionSession]] = {}
        self._connections: set[ConnectionSession] = set()
        self.delivery = DeliveryStats()

    def connect(self, conn: ConnectionSession) -> None:
        self._connections.add(conn)

    def subscribe(self, conn: ConnectionSession, chat_id: int) -> None:
        """Move conn to chat_id. A connection views at most one chat, so it leaves any other set first."""
        self._leave_current(conn)
        self._subscribers.setdefault(chat_id, set()).add(conn)
        conn.chat_id = chat_id
        logger.debug("Connection %s subscribed to chat %s", conn.id, chat_id)

    def unsubscribe(self, conn: ConnectionSession, chat_id: int) -> bool:
        """Remove conn from chat_id. No-op (returns False) when it was not subscribed there."""
        members = self._subscribers.get(chat_id)
        if not members or conn not in members:
            return False
        self._leave_current(conn)
        logger.debug("Connection %s unsubscribed from chat %s", conn.id, chat_id)
        return True

    def drop_connection(self, conn: ConnectionSession) -> None:
        """Forget conn entirely (on close, for any reason)."""
        self._leave_current(conn)
        self._connections.discard(conn)

    def _leave_current(self, conn: ConnectionSession) -> None:
        """Remove conn from the chat it records as subscribed, if any."""
        if conn.chat_id is None:
            return
        members = self._subscribers.get(conn.chat_id)
        if members is not None:
            members.discard(conn)
            if not members:
                del self._subscribers[conn.chat_id]
        conn.chat_id = None

    def broadcast(self, chat_id: int, payload: dict[str, Any]) -> int:
        """
        Queue payload on every open connection subscribed to chat_id; returns how many got it.
        Closed connections are skipped but left in place; their own close event removes them.
        """
        sent = 0
        for conn in list(self._subscribers.get(chat_id, ())):
            if not conn.is_open:
                continue
            if conn.send(payload):
                sent += 1
        return sent

    def subscribers(self, chat_id: int) -> frozenset[ConnectionSession]:
        return frozenset(self._subscribers.get(chat_id, ()))

    def stats(self) -> dict[str, int]:
        return {
            "connections": len(self._connections),
            "chats": len(self._subscribers),
            "subscriptions": sum(len(m) for m in self._subscribers.values()),
            "framesSent": self.delivery.frames_sent,
            "framesDropped": self.delivery.frames_dropped,
        }
