"""
SignalMessage value object - one decoded client request.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from signaleur.domain.exceptions import MalformedMessageError, UnknownCommandError

DEFAULT_MAX_MESSAGE_SIZE = 65_536


class Command(str, Enum):
    """Commands understood by the relay."""

    EMPTY = ""
    REQUEST_CHANNEL_ID = "requestChannelId"
    CONNECT_CHANNEL = "connectChannel"
    SEND = "send"


@dataclass(frozen=True)
class SignalMessage:
    """
    Immutable request object: ``{"cmd": str, "channel": str, "data": str}``.

    Missing fields decode to empty strings and unknown fields are ignored,
    so ``{"cmd": "requestChannelId"}`` is a complete request. The payload
    of ``data`` is opaque to the relay (SDP offers, ICE candidates, ...).

    Attributes:
        command: Decoded command
        channel: Target channel code (may be empty)
        data: Opaque payload forwarded verbatim
    """

    command: Command
    channel: str = ""
    data: str = ""

    @classmethod
    def decode(
        cls,
        raw: str,
        max_size: Optional[int] = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> "SignalMessage":
        """
        Decode one raw text frame.

        Args:
            raw: JSON text received from the client
            max_size: Maximum accepted size in bytes (None for no limit)

        Returns:
            SignalMessage

        Raises:
            MalformedMessageError: If the frame is too large, not JSON,
                not an object, or has non-string fields
            UnknownCommandError: If cmd is not a known command
        """
        if max_size is not None:
            size_bytes = len(raw.encode("utf-8"))
            if size_bytes > max_size:
                raise MalformedMessageError(
                    f"{size_bytes} bytes exceeds limit of {max_size}"
                )

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedMessageError(f"invalid JSON ({e.msg})") from e

        return cls.from_payload(payload)

    @classmethod
    def from_payload(cls, payload: Any) -> "SignalMessage":
        """
        Build a message from an already-parsed JSON value.

        Raises:
            MalformedMessageError: If payload is not a valid request object
            UnknownCommandError: If cmd is not a known command
        """
        if not isinstance(payload, dict):
            raise MalformedMessageError("message must be a JSON object")

        fields = {}
        for key in ("cmd", "channel", "data"):
            value = payload.get(key, "")
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise MalformedMessageError(
                    f"field '{key}' must be a string, got {type(value).__name__}"
                )
            fields[key] = value

        try:
            command = Command(fields["cmd"])
        except ValueError:
            raise UnknownCommandError(fields["cmd"]) from None

        return cls(command=command, channel=fields["channel"], data=fields["data"])

    def to_payload(self) -> Dict[str, str]:
        """Wire representation forwarded to other channel members."""
        return {
            "cmd": self.command.value,
            "channel": self.channel,
            "data": self.data,
        }

    def __repr__(self) -> str:
        return (
            f"SignalMessage(cmd={self.command.value!r}, "
            f"channel={self.channel!r}, data_len={len(self.data)})"
        )
