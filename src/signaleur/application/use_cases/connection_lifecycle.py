"""
Use case for driving one connection from accept to cleanup.
"""

import asyncio
import time
from enum import Enum
from typing import Dict, Optional

from signaleur.application.use_cases.message_router import MessageRouter
from signaleur.domain.entities import ConnectionHandle
from signaleur.domain.exceptions import ConnectionClosed, ProtocolError, SendFailure
from signaleur.infrastructure.monitoring import metrics
from signaleur.infrastructure.reporting import SystemReporter
from signaleur.infrastructure.websocket import ChannelRegistry

WS_1000_NORMAL_CLOSURE = 1000
WS_1001_GOING_AWAY = 1001
WS_1008_POLICY_VIOLATION = 1008
WS_1011_INTERNAL_ERROR = 1011


class ConnectionState(Enum):
    """Connection state enum."""

    CONNECTED = "connected"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"
    FAILED = "failed"


class ConnectionLifecycleManager:
    """
    Runs the receive loop of each connection and guarantees cleanup.

    Whatever ends the loop (peer close, protocol violation, unexpected
    error, cancellation), the connection leaves its channel and its
    transport is closed. Errors never escape into other connections.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        router: MessageRouter,
        reporter: Optional[SystemReporter] = None,
        close_flush_timeout: float = 1.0,
    ):
        """
        Initialize lifecycle manager.

        Args:
            registry: Shared channel registry
            router: Message router
            reporter: Optional SystemReporter
            close_flush_timeout: Seconds to flush queued messages on close
        """
        self.registry = registry
        self.router = router
        self.reporter = reporter
        self.close_flush_timeout = close_flush_timeout

        self._tasks: Dict[ConnectionHandle, Optional[asyncio.Task]] = {}

    @property
    def active_connections(self) -> int:
        return len(self._tasks)

    async def run(self, connection: ConnectionHandle) -> ConnectionState:
        """
        Serve one connection until it ends.

        Args:
            connection: Freshly accepted connection

        Returns:
            Final state: DISCONNECTED or FAILED
        """
        state = ConnectionState.CONNECTED
        close_code = WS_1000_NORMAL_CLOSURE
        close_reason = ""
        started = time.monotonic()
        messages = 0

        self._tasks[connection] = asyncio.current_task()
        metrics.connections_total.inc()
        metrics.connections_active.inc()

        connection.start()
        state = ConnectionState.ACTIVE

        if self.reporter:
            self.reporter.info(
                f"Connection opened [conn={connection.id}] "
                f"[active={self.active_connections}]",
                context="Lifecycle",
                verbose_level=2,
            )

        try:
            while True:
                raw = await connection.receive()
                if raw is None:
                    state = ConnectionState.DISCONNECTED
                    break

                messages += 1
                await self.router.dispatch(raw, connection)

        except ConnectionClosed:
            state = ConnectionState.DISCONNECTED

        except ProtocolError as e:
            state = ConnectionState.FAILED
            close_code = WS_1008_POLICY_VIOLATION
            close_reason = "Protocol error"
            metrics.protocol_errors_total.labels(error_type=type(e).__name__).inc()

            if self.reporter:
                self.reporter.warning(
                    f"Protocol error [conn={connection.id}]: {e.message}",
                    context="Lifecycle",
                )

            try:
                connection.send(e.to_payload())
            except SendFailure as failure:
                if self.reporter:
                    self.reporter.debug(
                        f"Error frame not sent: {failure.message}",
                        context="Lifecycle",
                    )

        except asyncio.CancelledError:
            state = ConnectionState.FAILED
            close_code = WS_1001_GOING_AWAY
            close_reason = "Server shutdown"
            raise

        except Exception as e:
            state = ConnectionState.FAILED
            close_code = WS_1011_INTERNAL_ERROR
            close_reason = "Internal error"

            if self.reporter:
                self.reporter.error(
                    f"Connection error [conn={connection.id}]: "
                    f"{type(e).__name__}: {e}",
                    context="Lifecycle",
                )

        finally:
            await self.registry.leave(connection)
            await connection.close(
                code=close_code,
                reason=close_reason,
                flush=state != ConnectionState.DISCONNECTED,
                flush_timeout=self.close_flush_timeout,
            )

            self._tasks.pop(connection, None)
            metrics.connections_active.dec()
            metrics.connections_closed_total.labels(state=state.value).inc()

            if self.reporter:
                self.reporter.info(
                    f"Connection closed [conn={connection.id}] "
                    f"[state={state.value}] "
                    f"[duration={time.monotonic() - started:.2f}s] "
                    f"[received={messages}] [sent={connection.messages_sent}]",
                    context="Lifecycle",
                    verbose_level=2,
                )

        return state

    async def close_all(
        self,
        code: int = WS_1001_GOING_AWAY,
        reason: str = "Server shutdown",
    ) -> int:
        """
        Close every tracked connection and wait for their loops to end.

        Loops still running after the flush timeout are cancelled.

        Returns:
            Number of connections closed
        """
        tracked = list(self._tasks.items())
        if not tracked:
            return 0

        if self.reporter:
            self.reporter.info(
                f"Closing {len(tracked)} connections (code={code})",
                context="Lifecycle",
                verbose_level=1,
            )

        for connection, _ in tracked:
            await connection.close(
                code=code,
                reason=reason,
                flush=True,
                flush_timeout=self.close_flush_timeout,
            )

        tasks = [
            task
            for _, task in tracked
            if task is not None and task is not asyncio.current_task()
        ]
        if tasks:
            _, pending = await asyncio.wait(tasks, timeout=self.close_flush_timeout)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.wait(pending)

        return len(tracked)
