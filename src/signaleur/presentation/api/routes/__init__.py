"""
API routes for Signaleur.
"""

from signaleur.presentation.api.routes.websocket import router as websocket_router

__all__ = ["websocket_router"]
