"""
WebSocket infrastructure for Signaleur.
"""

from signaleur.infrastructure.websocket.channel_registry import ChannelRegistry
from signaleur.infrastructure.websocket.websocket_connection import (
    WebSocketConnection,
)

__all__ = ["ChannelRegistry", "WebSocketConnection"]
