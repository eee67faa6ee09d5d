"""
Unit tests for domain exceptions.

Usage:
    pytest tests/unit/domain/test_exceptions.py
"""

from signaleur.domain.exceptions import (
    ChannelError,
    ConnectionClosed,
    IdSpaceExhausted,
    MalformedMessageError,
    ProtocolError,
    SendFailure,
    SignalingError,
    TransportError,
    UnknownCommandError,
)


class TestExceptionHierarchy:
    """Tests for the exception taxonomy and error frames."""

    def test_protocol_errors(self):
        """Test protocol violations share the PROTOCOL_ERROR code."""
        errors = [
            MalformedMessageError("bad"),
            UnknownCommandError("nope"),
        ]

        for error in errors:
            assert isinstance(error, ProtocolError)
            assert isinstance(error, SignalingError)
            assert error.code == "PROTOCOL_ERROR"

    def test_channel_errors(self):
        """Test IdSpaceExhausted is a channel error with its own code."""
        error = IdSpaceExhausted(20)

        assert isinstance(error, ChannelError)
        assert error.code == "CHANNEL_ID_EXHAUSTED"
        assert "20" in error.message

    def test_transport_errors(self):
        """Test transport errors carry the connection id."""
        closed = ConnectionClosed("127.0.0.1:1#1")
        failure = SendFailure("127.0.0.1:1#1", "outbox full")

        assert isinstance(closed, TransportError)
        assert isinstance(failure, TransportError)
        assert failure.connection_id == "127.0.0.1:1#1"
        assert failure.reason == "outbox full"

    def test_default_code_is_class_name(self):
        """Test errors without explicit code use the class name."""
        assert SignalingError("boom").code == "SignalingError"

    def test_to_payload(self):
        """Test error frame shape sent to clients."""
        payload = UnknownCommandError("nope").to_payload()

        assert payload == {
            "type": "error",
            "code": "PROTOCOL_ERROR",
            "message": "Unknown command: 'nope'",
        }
