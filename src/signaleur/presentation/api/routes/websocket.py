"""
WebSocket endpoint - the single signaling entry point.
"""

from fastapi import APIRouter, Depends, WebSocket, status

from signaleur.di import Container
from signaleur.infrastructure.websocket import WebSocketConnection
from signaleur.presentation.api.dependencies import get_container

router = APIRouter(tags=["websocket"])


@router.websocket("/")
async def websocket_endpoint(
    websocket: WebSocket,
    container: Container = Depends(get_container),
):
    """
    Signaling WebSocket endpoint.

    Requests are JSON objects ``{"cmd", "channel", "data"}``. Rejects new
    connections during graceful shutdown.

    Connection example:
        - ws://localhost:8000/
    """
    reporter = container.reporter

    if container.shutdown_manager.is_shutting_down():
        reporter.warning(
            "Connection rejected: server shutting down",
            context="WebSocket",
        )
        await websocket.close(
            code=status.WS_1001_GOING_AWAY,
            reason="Server is shutting down",
        )
        return

    await websocket.accept()

    connection = WebSocketConnection(
        websocket,
        max_pending_messages=container.settings.max_pending_messages,
        reporter=reporter,
    )

    reporter.debug(
        f"WebSocket connection accepted [conn={connection.id}]",
        context="WebSocket",
    )

    await container.lifecycle_manager.run(connection)
