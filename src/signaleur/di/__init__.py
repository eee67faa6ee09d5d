"""
Dependency injection for Signaleur.
"""

from signaleur.di.container import Container

__all__ = ["Container"]
