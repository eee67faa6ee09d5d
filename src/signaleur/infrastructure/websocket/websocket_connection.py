"""
FastAPI WebSocket transport for ConnectionHandle.
"""

from typing import Any, Dict, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from signaleur.domain.entities import ConnectionHandle
from signaleur.domain.exceptions import MalformedMessageError
from signaleur.infrastructure.reporting import SystemReporter


def _format_address(websocket: WebSocket) -> str:
    client = websocket.client
    if client is None:
        return "unknown"
    return f"{client.host}:{client.port}"


class WebSocketConnection(ConnectionHandle):
    """
    ConnectionHandle backed by an accepted Starlette/FastAPI WebSocket.

    Text frames are returned as-is; binary frames are decoded as UTF-8.
    """

    def __init__(
        self,
        websocket: WebSocket,
        max_pending_messages: int = 256,
        reporter: Optional[SystemReporter] = None,
    ):
        super().__init__(
            remote_address=_format_address(websocket),
            max_pending_messages=max_pending_messages,
            reporter=reporter,
        )
        self.websocket = websocket

    async def receive(self) -> Optional[str]:
        message = await self.websocket.receive()

        if message["type"] == "websocket.disconnect":
            return None

        text = message.get("text")
        if text is not None:
            return text

        data = message.get("bytes")
        if data is None:
            raise MalformedMessageError("empty frame")

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedMessageError("binary frame is not valid UTF-8") from None

    async def _transmit(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send_json(payload)

    async def _close_transport(self, code: int, reason: str) -> None:
        if (
            self.websocket.client_state == WebSocketState.DISCONNECTED
            or self.websocket.application_state == WebSocketState.DISCONNECTED
        ):
            return

        try:
            await self.websocket.close(code=code, reason=reason)
        except RuntimeError as e:
            # Peer vanished between the state check and the close frame
            if self.reporter:
                self.reporter.debug(
                    f"Close skipped [conn={self.id}]: {e}",
                    context="Connection",
                )
