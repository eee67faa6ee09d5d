"""
Dependency Injection container for Signaleur.

Manages lifecycle and dependencies of all application components.
"""

from typing import Optional

from signaleur.application.use_cases import ConnectionLifecycleManager, MessageRouter
from signaleur.config.settings import Settings
from signaleur.domain.services import ChannelIdGenerator
from signaleur.infrastructure.reporting import SystemReporter
from signaleur.infrastructure.shutdown import ShutdownManager
from signaleur.infrastructure.websocket import ChannelRegistry


class Container:
    """
    Dependency Injection container.

    Creates and manages all application dependencies.
    Every shared component is built once, on first access.
    """

    def __init__(self, settings: Settings, reporter: Optional[SystemReporter] = None):
        """
        Initialize container with settings.

        Args:
            settings: Application settings
            reporter: Optional SystemReporter shared by all components
        """
        self.settings = settings
        self.reporter = reporter or SystemReporter(
            name="signaleur",
            level=settings.log_level,
            verbose=settings.verbose,
        )

        self._registry: Optional[ChannelRegistry] = None
        self._generator: Optional[ChannelIdGenerator] = None
        self._router: Optional[MessageRouter] = None
        self._lifecycle_manager: Optional[ConnectionLifecycleManager] = None
        self._shutdown_manager: Optional[ShutdownManager] = None

    @property
    def registry(self) -> ChannelRegistry:
        """
        Get ChannelRegistry singleton.

        Returns:
            ChannelRegistry instance
        """
        if self._registry is None:
            self._registry = ChannelRegistry(reporter=self.reporter)
        return self._registry

    @property
    def generator(self) -> ChannelIdGenerator:
        """
        Get ChannelIdGenerator configured from settings.

        Returns:
            ChannelIdGenerator instance
        """
        if self._generator is None:
            self._generator = ChannelIdGenerator(
                alphabet=self.settings.channel_code_alphabet,
                length=self.settings.channel_code_length,
                max_attempts=self.settings.channel_code_max_attempts,
            )
        return self._generator

    @property
    def router(self) -> MessageRouter:
        if self._router is None:
            self._router = MessageRouter(
                registry=self.registry,
                generator=self.generator,
                reporter=self.reporter,
                max_message_size=self.settings.max_message_size,
            )
        return self._router

    @property
    def lifecycle_manager(self) -> ConnectionLifecycleManager:
        if self._lifecycle_manager is None:
            self._lifecycle_manager = ConnectionLifecycleManager(
                registry=self.registry,
                router=self.router,
                reporter=self.reporter,
                close_flush_timeout=self.settings.close_flush_timeout,
            )
        return self._lifecycle_manager

    @property
    def shutdown_manager(self) -> ShutdownManager:
        """
        Get ShutdownManager singleton.

        Returns:
            ShutdownManager instance
        """
        if self._shutdown_manager is None:
            self._shutdown_manager = ShutdownManager(
                shutdown_timeout=self.settings.shutdown_timeout,
                reporter=self.reporter,
            )
        return self._shutdown_manager
