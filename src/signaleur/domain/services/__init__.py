"""
Domain services for Signaleur.
"""

from signaleur.domain.services.channel_id_generator import ChannelIdGenerator

__all__ = ["ChannelIdGenerator"]
