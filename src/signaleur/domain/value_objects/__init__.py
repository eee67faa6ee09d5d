"""
Domain value objects for Signaleur.
"""
from signaleur.domain.value_objects.signal_message import Command, SignalMessage

__all__ = ["Command", "SignalMessage"]
