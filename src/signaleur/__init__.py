"""
Signaleur - WebSocket Signaling Relay

Clean Architecture implementation of a short-code channel relay
for exchanging signaling messages between peers.
"""

from signaleur.main import SignaleurApp, main

__version__ = "0.1.0"
__all__ = ["SignaleurApp", "main"]
