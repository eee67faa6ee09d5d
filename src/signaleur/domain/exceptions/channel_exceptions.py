"""
Channel-related exceptions.
"""

from signaleur.domain.exceptions.base import SignalingError


class ChannelError(SignalingError):
    """Base exception for channel errors."""


class IdSpaceExhausted(ChannelError):
    """
    Raised when no free channel code was found within the retry bound.

    Reported to the requesting client; the connection stays open.
    """

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not allocate a channel id after {attempts} attempts",
            code="CHANNEL_ID_EXHAUSTED",
        )
        self.attempts = attempts
