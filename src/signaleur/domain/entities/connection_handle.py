"""
ConnectionHandle entity - one connected client, independent of transport.
"""

import asyncio
import itertools
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from signaleur.domain.exceptions import SendFailure

_connection_ids = itertools.count(1)


class ConnectionHandle(ABC):
    """
    Abstraction over one external connection.

    Outbound messages go through a bounded FIFO outbox drained by a writer
    task, so ``send`` never blocks the caller and each recipient receives
    messages in the order they were queued.

    Subclasses implement the transport: ``receive``, ``_transmit`` and
    ``_close_transport``.

    Attributes:
        id: Opaque identity (remote address + monotonic counter)
        remote_address: Peer address as reported by the transport
        channel_code: Channel this connection belongs to, if any.
            Owned by ChannelRegistry; never set it directly.
        connected_at: Connection timestamp (UTC)
        messages_sent: Messages actually written to the transport
    """

    def __init__(
        self,
        remote_address: str,
        max_pending_messages: int = 256,
        reporter: Optional[Any] = None,
    ):
        """
        Initialize ConnectionHandle.

        Args:
            remote_address: Peer address (e.g. '10.0.0.5:51234')
            max_pending_messages: Outbox capacity before sends fail
            reporter: Optional SystemReporter
        """
        self.remote_address: str = remote_address
        self.id: str = f"{remote_address}#{next(_connection_ids)}"
        self.channel_code: Optional[str] = None
        self.connected_at: datetime = datetime.now(timezone.utc)
        self.messages_sent: int = 0
        self.reporter = reporter

        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=max_pending_messages)
        self._writer_task: Optional[asyncio.Task] = None
        self._accepting = True
        self._transport_closed = False

    # ================================================================
    # Transport (implemented by subclasses)
    # ================================================================

    @abstractmethod
    async def receive(self) -> Optional[str]:
        """
        Wait for the next inbound text message.

        Returns:
            Raw message text, or None on clean end-of-stream

        Raises:
            MalformedMessageError: If the frame cannot be read as text
        """

    @abstractmethod
    async def _transmit(self, payload: Dict[str, Any]) -> None:
        """Write one message to the transport."""

    @abstractmethod
    async def _close_transport(self, code: int, reason: str) -> None:
        """Release the underlying transport."""

    # ================================================================
    # Outbox
    # ================================================================

    @property
    def is_open(self) -> bool:
        """True while the connection accepts outbound messages."""
        return self._accepting

    @property
    def pending_messages(self) -> int:
        return self._outbox.qsize()

    def start(self) -> None:
        """Start the writer task. Must be called from the event loop."""
        if self._writer_task is None:
            self._writer_task = asyncio.create_task(
                self._drain_outbox(), name=f"writer[{self.id}]"
            )

    def send(self, payload: Dict[str, Any]) -> None:
        """
        Queue one message for delivery. Does not wait for the write.

        Raises:
            SendFailure: If the connection is closed or its outbox is full
        """
        if not self._accepting:
            raise SendFailure(self.id, "connection closed")

        try:
            self._outbox.put_nowait(payload)
        except asyncio.QueueFull:
            raise SendFailure(
                self.id, f"outbox full ({self._outbox.maxsize} pending)"
            ) from None

    async def _drain_outbox(self) -> None:
        while True:
            payload = await self._outbox.get()
            try:
                await self._transmit(payload)
                self.messages_sent += 1
            except Exception as e:
                self._accepting = False
                if self.reporter:
                    self.reporter.warning(
                        f"Write failed, dropping {self._outbox.qsize()} pending "
                        f"[conn={self.id}]: {type(e).__name__}: {e}",
                        context="Connection",
                        verbose_level=2,
                    )
                self._discard_pending()
                return
            finally:
                self._outbox.task_done()

    def _discard_pending(self) -> None:
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()

    async def flush(self, timeout: float = 1.0) -> bool:
        """
        Wait until every queued message has been written.

        Returns:
            True if the outbox drained within timeout
        """
        if self._writer_task is None or self._writer_task.done():
            return self._outbox.empty()

        try:
            await asyncio.wait_for(self._outbox.join(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    # ================================================================
    # Close
    # ================================================================

    async def close(
        self,
        code: int = 1000,
        reason: str = "",
        flush: bool = True,
        flush_timeout: float = 1.0,
    ) -> None:
        """
        Stop accepting messages, optionally flush the outbox, and release
        the transport. Safe to call more than once.

        Args:
            code: Close code reported to the peer
            reason: Close reason reported to the peer
            flush: Deliver queued messages before closing
            flush_timeout: Seconds to wait for the flush
        """
        if self._transport_closed:
            return

        self._accepting = False

        if flush:
            await self.flush(flush_timeout)

        if self._writer_task is not None and not self._writer_task.done():
            self._writer_task.cancel()
            await asyncio.wait([self._writer_task])

        self._discard_pending()
        self._transport_closed = True
        await self._close_transport(code, reason)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(id={self.id}, "
            f"channel={self.channel_code}, open={self._accepting})"
        )
