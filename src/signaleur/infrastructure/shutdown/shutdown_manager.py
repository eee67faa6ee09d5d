"""
Graceful shutdown manager.

uvicorn owns SIGTERM/SIGINT; RelayServer calls ``initiate_shutdown``
when the server stops, and the WebSocket route consults
``is_shutting_down`` to refuse new connections.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Union

from signaleur.infrastructure.reporting import SystemReporter

ShutdownCallback = Callable[[], Union[None, Awaitable[None]]]


class ShutdownState(Enum):
    """Shutdown state enum."""

    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    SHUTDOWN = "shutdown"


class ShutdownManager:
    """
    Tracks shutdown state and runs cleanup callbacks in registration order.

    Attributes:
        state: Current shutdown state
        shutdown_timeout: Max seconds allowed for all callbacks
        shutdown_started_at: Timestamp when shutdown initiated
    """

    def __init__(
        self,
        shutdown_timeout: int = 30,
        reporter: Optional[SystemReporter] = None,
    ):
        self.shutdown_timeout = shutdown_timeout
        self.reporter = reporter

        self.state = ShutdownState.RUNNING
        self.shutdown_started_at: Optional[datetime] = None
        self._callbacks: List[ShutdownCallback] = []

    def is_shutting_down(self) -> bool:
        return self.state in (ShutdownState.SHUTTING_DOWN, ShutdownState.SHUTDOWN)

    def is_running(self) -> bool:
        return self.state == ShutdownState.RUNNING

    def register_shutdown_callback(self, callback: ShutdownCallback) -> None:
        """
        Register a sync or async callback to run on shutdown.

        Args:
            callback: Called with no arguments
        """
        self._callbacks.append(callback)

    async def initiate_shutdown(self, reason: str = "manual") -> None:
        """
        Enter SHUTTING_DOWN and run every callback.

        A failing or slow callback is logged and does not stop the others;
        the whole sequence is bounded by shutdown_timeout.

        Args:
            reason: Why shutdown started (for logs)
        """
        if self.state != ShutdownState.RUNNING:
            return

        self.state = ShutdownState.SHUTTING_DOWN
        self.shutdown_started_at = datetime.now(timezone.utc)

        if self.reporter:
            self.reporter.warning(
                f"Graceful shutdown initiated (reason: {reason}, "
                f"callbacks: {len(self._callbacks)})",
                context="Shutdown",
            )

        try:
            await asyncio.wait_for(
                self._run_callbacks(), timeout=self.shutdown_timeout
            )
        except asyncio.TimeoutError:
            if self.reporter:
                self.reporter.warning(
                    f"Shutdown timeout after {self.shutdown_timeout}s",
                    context="Shutdown",
                )

        self.state = ShutdownState.SHUTDOWN

    async def _run_callbacks(self) -> None:
        for callback in self._callbacks:
            try:
                result = callback()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                if self.reporter:
                    self.reporter.error(
                        f"Shutdown callback {getattr(callback, '__name__', callback)} "
                        f"failed: {type(e).__name__}: {e}",
                        context="Shutdown",
                    )
