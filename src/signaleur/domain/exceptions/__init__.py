"""
Domain exceptions for Signaleur.
"""

from signaleur.domain.exceptions.base import SignalingError
from signaleur.domain.exceptions.channel_exceptions import (
    ChannelError,
    IdSpaceExhausted,
)
from signaleur.domain.exceptions.protocol_exceptions import (
    MalformedMessageError,
    ProtocolError,
    UnknownCommandError,
)
from signaleur.domain.exceptions.transport_exceptions import (
    ConnectionClosed,
    SendFailure,
    TransportError,
)

__all__ = [
    "SignalingError",
    "ChannelError",
    "IdSpaceExhausted",
    "ProtocolError",
    "MalformedMessageError",
    "UnknownCommandError",
    "TransportError",
    "ConnectionClosed",
    "SendFailure",
]
