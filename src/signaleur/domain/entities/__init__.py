"""
Domain entities for Signaleur.
"""

from signaleur.domain.entities.channel import Channel
from signaleur.domain.entities.connection_handle import ConnectionHandle

__all__ = ["Channel", "ConnectionHandle"]
