"""
Realtime chat over a websocket: per-connection sessions, the chat subscription registry,
and the gateway that routes inbound frames to them.
"""
from mcp_console.realtime.connection import ConnectionSession, DeliveryStats
from mcp_console.realtime.gateway import RealtimeGateway
from mcp_console.realtime.registry import SubscriptionRegistry

__all__ = ["ConnectionSession", "DeliveryStats", "RealtimeGateway", "SubscriptionRegistry"]
