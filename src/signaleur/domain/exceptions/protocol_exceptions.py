"""
Protocol exceptions.

Any ProtocolError terminates the offending connection only.
"""

from signaleur.domain.exceptions.base import SignalingError


class ProtocolError(SignalingError):
    """Raised when a client violates the signaling protocol."""

    def __init__(self, message: str, code: str = "PROTOCOL_ERROR"):
        super().__init__(message, code=code)


class MalformedMessageError(ProtocolError):
    """Raised when an inbound payload cannot be decoded."""

    def __init__(self, reason: str):
        super().__init__(f"Malformed message: {reason}")
        self.reason = reason


class UnknownCommandError(ProtocolError):
    """Raised when the cmd field is not a known command."""

    def __init__(self, command: str):
        super().__init__(f"Unknown command: {command!r}")
        self.command = command

