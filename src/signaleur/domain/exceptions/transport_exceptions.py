"""
Transport exceptions raised by connection handles.
"""

from signaleur.domain.exceptions.base import SignalingError


class TransportError(SignalingError):
    """Base exception for connection transport errors."""


class ConnectionClosed(TransportError):
    """Raised when the peer closed the stream. Normal termination path."""

    def __init__(self, connection_id: str):
        super().__init__(f"Connection closed: {connection_id}")
        self.connection_id = connection_id


class SendFailure(TransportError):
    """Raised when a message cannot be queued for one recipient."""

    def __init__(self, connection_id: str, reason: str):
        super().__init__(f"Send to {connection_id} failed: {reason}")
        self.connection_id = connection_id
        self.reason = reason
