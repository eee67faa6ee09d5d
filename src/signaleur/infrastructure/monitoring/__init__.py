"""
Monitoring infrastructure for Signaleur.

Provides:
- Prometheus metrics (module-level collectors)
- Metrics HTTP server
"""

from signaleur.infrastructure.monitoring import metrics
from signaleur.infrastructure.monitoring.metrics_server import MetricsServer

__all__ = ["MetricsServer", "metrics"]
