"""
In-memory ConnectionHandle for tests.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Union

from signaleur.domain.entities import ConnectionHandle


class FakeConnection(ConnectionHandle):
    """
    ConnectionHandle driven by a queue instead of a socket.

    Feed inbound frames with ``feed``; outbound messages land in ``sent``
    once the writer task has drained them. Closing the transport ends the
    receive stream, like a real peer acknowledging a close frame.
    """

    def __init__(
        self,
        remote_address: str = "127.0.0.1:5000",
        max_pending_messages: int = 256,
        fail_transmit: bool = False,
        gate: Optional[asyncio.Event] = None,
        reporter=None,
    ):
        super().__init__(
            remote_address=remote_address,
            max_pending_messages=max_pending_messages,
            reporter=reporter,
        )
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent: List[Dict[str, Any]] = []
        self.fail_transmit = fail_transmit
        self.gate = gate
        self.close_code: Optional[int] = None
        self.close_reason: Optional[str] = None

    def feed(self, message: Union[str, Dict[str, Any], Exception, None]) -> None:
        """Queue one inbound frame (dicts are JSON-encoded, None ends the stream)."""
        if isinstance(message, dict):
            message = json.dumps(message)
        self.incoming.put_nowait(message)

    def disconnect(self) -> None:
        self.incoming.put_nowait(None)

    async def receive(self) -> Optional[str]:
        item = await self.incoming.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def _transmit(self, payload: Dict[str, Any]) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_transmit:
            raise RuntimeError("socket gone")
        self.sent.append(payload)

    async def _close_transport(self, code: int, reason: str) -> None:
        self.close_code = code
        self.close_reason = reason
        self.incoming.put_nowait(None)

    @property
    def is_closed(self) -> bool:
        return self.close_code is not None
