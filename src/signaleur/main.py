"""
Signaleur - WebSocket Signaling Relay

Orchestrates Clean Architecture components to relay signaling
messages between members of short-code channels.
"""

import asyncio
import os
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI

from signaleur.config.settings import Settings, load_config
from signaleur.di import Container
from signaleur.infrastructure.monitoring import MetricsServer
from signaleur.infrastructure.reporting import SystemReporter
from signaleur.infrastructure.shutdown import ShutdownManager
from signaleur.presentation.api.dependencies import set_container
from signaleur.presentation.api.routes import websocket_router


class RelayServer(uvicorn.Server):
    """
    uvicorn server that runs the graceful shutdown sequence first.

    uvicorn closes open WebSockets with 1012 before the lifespan shutdown
    event, so the relay closes them with 1001 while they are still open.
    """

    def __init__(self, config: uvicorn.Config, shutdown_manager: ShutdownManager):
        super().__init__(config)
        self.shutdown_manager = shutdown_manager

    async def shutdown(self, sockets: Optional[List] = None) -> None:
        await self.shutdown_manager.initiate_shutdown(reason="server stop")
        await super().shutdown(sockets=sockets)


class SignaleurApp:
    """
    Signaleur application orchestrator.

    Thin coordination layer that initializes and connects
    all Clean Architecture components.

    Responsibilities:
        - Initialize DI container
        - Setup FastAPI application
        - Register API routes
        - Manage application lifecycle with graceful shutdown
        - Run the unclaimed-channel sweep
        - Start the optional metrics server
        - Run uvicorn server
    """

    def __init__(self, settings: Settings):
        """
        Initialize Signaleur application.

        Args:
            settings: Application settings
        """
        self.settings = settings

        # Initialize reporter FIRST
        self.reporter = self._create_reporter()

        # Initialize container with reporter
        self.container = Container(settings, reporter=self.reporter)

        # Create FastAPI app
        self.app = self._create_app()

        # Set global container for FastAPI dependencies
        set_container(self.container)

        self.metrics_server: Optional[MetricsServer] = None
        self._sweep_task: Optional[asyncio.Task] = None

        # Server instance (set during start)
        self.server: Optional[RelayServer] = None

        self.reporter.info(
            f"Signaleur initialized (env={settings.ENV})",
            context="Signaleur",
            verbose_level=1,
        )

    def _create_reporter(self) -> SystemReporter:
        """
        Create SystemReporter instance.

        Returns:
            Configured SystemReporter
        """
        log_dir = None

        if self.settings.log_file:
            log_dir = os.path.dirname(self.settings.log_file)
            if not log_dir:
                log_dir = "logs"

        return SystemReporter(
            name="signaleur",
            log_dir=log_dir,
            level=self.settings.log_level,
            verbose=self.settings.verbose,
        )

    def _create_app(self) -> FastAPI:
        """
        Create FastAPI application with lifespan management.

        Returns:
            Configured FastAPI application
        """

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            """Application lifespan context manager with graceful shutdown."""
            # Startup
            await self._on_startup()

            yield

            # Shutdown
            await self._on_shutdown()

        app = FastAPI(
            title="Signaleur",
            description="WebSocket signaling relay",
            version=self.settings.APP_VERSION,
            lifespan=lifespan,
            openapi_url=None,
            docs_url=None,
            redoc_url=None,
        )

        # Register routes from presentation layer
        app.include_router(websocket_router)

        return app

    async def _on_startup(self):
        """
        Application startup event handler.

        Registers shutdown callbacks, starts the sweep task and the
        metrics server.
        """
        self.reporter.info(
            "Signaleur starting...",
            context="Signaleur",
            verbose_level=1,
        )

        shutdown_manager = self.container.shutdown_manager
        shutdown_manager.register_shutdown_callback(self._stop_sweep)
        shutdown_manager.register_shutdown_callback(self._close_connections)
        shutdown_manager.register_shutdown_callback(self._stop_metrics_server)

        if self.settings.unclaimed_channel_ttl > 0:
            self._sweep_task = asyncio.create_task(
                self._sweep_loop(), name="unclaimed-channel-sweep"
            )

        if self.settings.METRICS_ENABLED:
            self.metrics_server = MetricsServer(
                host=self.settings.METRICS_HOST,
                port=self.settings.METRICS_PORT,
                reporter=self.reporter,
            )
            self.metrics_server.start_in_background()

        self.reporter.info(
            f"Signaleur ready on ws://{self.settings.host}:{self.settings.port}/ "
            f"(code length={self.settings.channel_code_length}, "
            f"id space={self.container.generator.id_space_size})",
            context="Signaleur",
            verbose_level=1,
        )

    async def _on_shutdown(self):
        """Application shutdown event handler."""
        await self.container.shutdown_manager.initiate_shutdown(reason="lifespan")

        self.reporter.info(
            "Signaleur stopped",
            context="Signaleur",
            verbose_level=1,
        )

    async def _sweep_loop(self):
        """
        Periodically remove channels that were allocated but never joined.

        Stops when shutdown initiated.
        """
        interval = self.settings.cleanup_interval
        ttl = self.settings.unclaimed_channel_ttl
        registry = self.container.registry
        shutdown_manager = self.container.shutdown_manager

        self.reporter.info(
            f"Unclaimed channel sweep started (interval: {interval}s, ttl: {ttl}s)",
            context="Signaleur",
            verbose_level=2,
        )

        while not shutdown_manager.is_shutting_down():
            await asyncio.sleep(interval)
            await registry.cleanup_unclaimed_channels(ttl)

    async def _stop_sweep(self):
        if self._sweep_task is None:
            return

        self._sweep_task.cancel()
        await asyncio.wait([self._sweep_task])
        self._sweep_task = None

    async def _close_connections(self):
        closed = await self.container.lifecycle_manager.close_all()
        if closed:
            self.reporter.info(
                f"Closed {closed} connections",
                context="Signaleur",
                verbose_level=1,
            )

    def _stop_metrics_server(self):
        if self.metrics_server is not None:
            self.metrics_server.shutdown()
            self.metrics_server = None

    def create_server(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> RelayServer:
        """
        Build the uvicorn server for this application.

        Args:
            host: Bind address (defaults to settings.host)
            port: Bind port (defaults to settings.port, 0 picks a free one)

        Returns:
            RelayServer wired to the shutdown manager
        """
        config = uvicorn.Config(
            self.app,
            host=host if host is not None else self.settings.host,
            port=port if port is not None else self.settings.port,
            log_level=self.settings.log_level,
            lifespan="on",
        )
        self.server = RelayServer(config, self.container.shutdown_manager)
        return self.server

    async def serve(self):
        """
        Run server.

        uvicorn handles SIGINT/SIGTERM; RelayServer runs the graceful
        shutdown sequence before uvicorn tears connections down.
        """
        await self.create_server().serve()

    def start(self):
        """
        Start Signaleur server.

        Blocks until server is stopped.
        """
        asyncio.run(self.serve())


def main():
    """
    Main entry point for Signaleur application.

    Loads configuration and starts the server.
    """
    # Load configuration
    config = load_config()

    # Allow port override from command line
    if len(sys.argv) > 1:
        try:
            config.port = int(sys.argv[1])
        except ValueError:
            print(f"Invalid port: {sys.argv[1]}")
            sys.exit(1)

    # Create and start application
    app = SignaleurApp(config)

    try:
        app.start()
    except KeyboardInterrupt:
        print("\nSignaleur stopped by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
