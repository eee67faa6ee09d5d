"""
Application use cases for Signaleur.
"""

from signaleur.application.use_cases.connection_lifecycle import (
    ConnectionLifecycleManager,
    ConnectionState,
)
from signaleur.application.use_cases.message_router import MessageRouter

__all__ = [
    "ConnectionLifecycleManager",
    "ConnectionState",
    "MessageRouter",
]
