"""
Prometheus metrics HTTP server.

Exposes /metrics on its own host/port, served from a daemon thread
with wsgiref so the relay listener stays untouched.
"""

import threading
from typing import Optional
from wsgiref.simple_server import WSGIServer, make_server

from prometheus_client import make_wsgi_app

from signaleur.infrastructure.reporting import SystemReporter


class MetricsServer:
    """
    Standalone HTTP server for Prometheus metrics.

    Example:
        server = MetricsServer(host="0.0.0.0", port=9090)
        server.start_in_background()
        ...
        server.shutdown()
    """

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 9090,
        reporter: Optional[SystemReporter] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.reporter = reporter
        self.httpd: Optional[WSGIServer] = None
        self._thread: Optional[threading.Thread] = None

    def start_in_background(self) -> None:
        """
        Bind the port and serve from a daemon thread.

        Raises:
            OSError: If the port is already in use
        """
        try:
            self.httpd = make_server(self.host, self.port, make_wsgi_app())
        except OSError as e:
            if self.reporter:
                self.reporter.error(
                    f"Failed to bind metrics server to {self.host}:{self.port}: {e}",
                    context="Metrics",
                )
            raise

        self._thread = threading.Thread(
            target=self.httpd.serve_forever,
            daemon=True,
            name="MetricsServer",
        )
        self._thread.start()

        if self.reporter:
            self.reporter.info(f"Metrics server started on {self.url}", context="Metrics")

    def shutdown(self) -> None:
        """Stop serving and release the port."""
        if self.httpd is None:
            return

        self.httpd.shutdown()
        self.httpd.server_close()
        self.httpd = None

        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

        if self.reporter:
            self.reporter.info("Metrics server shut down", context="Metrics")

    @property
    def is_running(self) -> bool:
        return self.httpd is not None

    @property
    def url(self) -> str:
        """Full URL of the metrics endpoint."""
        return f"http://{self.host}:{self.port}/metrics"
