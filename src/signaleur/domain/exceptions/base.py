"""
Base domain exceptions.
"""


class SignalingError(Exception):
    """Base exception for all Signaleur domain errors."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def to_payload(self) -> dict:
        """Error frame sent to the client that caused the error."""
        return {"type": "error", "code": self.code, "message": self.message}
