"""
Use case for routing inbound signaling messages.
"""

from typing import Any, Dict, Optional

from signaleur.domain.entities import ConnectionHandle
from signaleur.domain.exceptions import IdSpaceExhausted, SendFailure
from signaleur.domain.services import ChannelIdGenerator
from signaleur.domain.value_objects import Command, SignalMessage
from signaleur.domain.value_objects.signal_message import DEFAULT_MAX_MESSAGE_SIZE
from signaleur.infrastructure.monitoring import metrics
from signaleur.infrastructure.reporting import SystemReporter
from signaleur.infrastructure.websocket import ChannelRegistry


class MessageRouter:
    """
    Decodes one inbound message and applies its command.

    Commands:
        ""                  ignored
        requestChannelId    allocate a channel, reply {"cid": code}
        connectChannel      join (or implicitly create) a channel
        send                forward {"cmd","channel","data"} to other members

    Protocol violations are raised to the caller, which terminates the
    offending connection. Id space exhaustion is answered with an error
    frame and the connection stays open.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        generator: ChannelIdGenerator,
        reporter: Optional[SystemReporter] = None,
        max_message_size: Optional[int] = DEFAULT_MAX_MESSAGE_SIZE,
    ):
        """
        Initialize router.

        Args:
            registry: Shared channel registry
            generator: Channel code generator
            reporter: Optional SystemReporter
            max_message_size: Inbound size limit in bytes (None disables)
        """
        self.registry = registry
        self.generator = generator
        self.reporter = reporter
        self.max_message_size = max_message_size

    async def dispatch(self, raw: str, connection: ConnectionHandle) -> None:
        """
        Decode a raw frame and route it.

        Raises:
            ProtocolError: If the frame is malformed or the command unknown
        """
        message = SignalMessage.decode(raw, max_size=self.max_message_size)
        metrics.messages_received_total.labels(
            command=message.command.value or "empty"
        ).inc()
        await self.route(message, connection)

    async def route(self, message: SignalMessage, connection: ConnectionHandle) -> None:
        """Apply one decoded message on behalf of ``connection``."""
        if message.command == Command.REQUEST_CHANNEL_ID:
            await self._request_channel_id(connection)

        elif message.command == Command.CONNECT_CHANNEL:
            await self.registry.join(message.channel, connection)

        elif message.command == Command.SEND:
            await self.registry.broadcast(
                message.channel, message.to_payload(), exclude=connection
            )

        elif self.reporter:
            self.reporter.debug(
                f"Empty command ignored [conn={connection.id}]",
                context="Router",
            )

    async def _request_channel_id(self, connection: ConnectionHandle) -> None:
        try:
            code = await self.registry.allocate_channel(self.generator)
        except IdSpaceExhausted as e:
            metrics.channel_id_exhausted_total.inc()
            if self.reporter:
                self.reporter.warning(
                    f"Channel id space exhausted [conn={connection.id}] "
                    f"[channels={len(self.registry)}] "
                    f"[space={self.generator.id_space_size}]",
                    context="Router",
                )
            self._reply(connection, e.to_payload())
            return

        if self.reporter:
            self.reporter.info(
                f"Channel allocated: {code} [conn={connection.id}]",
                context="Router",
                verbose_level=2,
            )

        self._reply(connection, {"cid": code})

    def _reply(self, connection: ConnectionHandle, payload: Dict[str, Any]) -> None:
        try:
            connection.send(payload)
        except SendFailure as e:
            metrics.send_failures_total.inc()
            if self.reporter:
                self.reporter.warning(
                    f"Reply dropped: {e.message}",
                    context="Router",
                    verbose_level=2,
                )
