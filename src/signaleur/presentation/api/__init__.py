"""
HTTP and WebSocket API for Signaleur.
"""
