"""
Configuration for Signaleur.
"""

from signaleur.config.settings import Settings, load_config

__all__ = ["Settings", "load_config"]
