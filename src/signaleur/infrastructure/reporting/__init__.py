"""
Logging infrastructure for Signaleur.
"""

from signaleur.infrastructure.reporting.system_reporter import SystemReporter

__all__ = ["SystemReporter"]
