"""
Shutdown infrastructure for Signaleur.
"""

from signaleur.infrastructure.shutdown.shutdown_manager import (
    ShutdownManager,
    ShutdownState,
)

__all__ = ["ShutdownManager", "ShutdownState"]
