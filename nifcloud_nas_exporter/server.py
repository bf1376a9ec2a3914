"""HTTP exposition of the exporter registry."""

import logging
import threading
from socketserver import ThreadingMixIn
from typing import Optional
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CollectorRegistry, Counter, Gauge, make_wsgi_app


LANDING_PAGE = """<html>
<head><title>NIFCLOUD NAS Exporter</title></head>
<body>
<h1>NIFCLOUD NAS Exporter</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>"""


class ExporterApplication:
    """
    WSGI application serving the telemetry path and a landing page.

    Scrapes beyond max_requests in flight are rejected with 503 rather than
    queued, so a slow statistics API cannot pile up scrape passes.
    """

    def __init__(
        self,
        registry: CollectorRegistry,
        telemetry_path: str = "/metrics",
        max_requests: int = 40,
        instrumentation_registry: Optional[CollectorRegistry] = None
    ):
        """
        Initialize application.

        Args:
            registry: Registry exposed on the telemetry path
            telemetry_path: Path serving metrics
            max_requests: Maximum parallel scrapes, 0 disables the limit
            instrumentation_registry: Where handler metrics are registered
                (None disables handler metrics)
        """
        self.telemetry_path = telemetry_path
        self.max_requests = max_requests
        self._metrics_app = make_wsgi_app(registry)
        self._slots = threading.BoundedSemaphore(max_requests) if max_requests > 0 else None
        self._landing_page = LANDING_PAGE.format(path=telemetry_path).encode("utf-8")

        self.requests_total = None
        self.requests_in_flight = None
        if instrumentation_registry is not None:
            self.requests_total = Counter(
                "promhttp_metric_handler_requests_total",
                "Total number of scrapes by HTTP status code.",
                ["code"],
                registry=instrumentation_registry,
            )
            self.requests_in_flight = Gauge(
                "promhttp_metric_handler_requests_in_flight",
                "Current number of scrapes being served.",
                registry=instrumentation_registry,
            )

    def __call__(self, environ, start_response):
        if environ.get("PATH_INFO", "/") == self.telemetry_path:
            return self._serve_metrics(environ, start_response)
        start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
        return [self._landing_page]

    def _serve_metrics(self, environ, start_response):
        if self._slots is not None and not self._slots.acquire(blocking=False):
            self._count("503")
            start_response("503 Service Unavailable", [("Content-Type", "text/plain; charset=utf-8")])
            message = f"Limit of concurrent requests reached ({self.max_requests}), try again later.\n"
            return [message.encode("utf-8")]

        status_holder = {}

        def recording_start_response(status, headers, exc_info=None):
            status_holder["code"] = status.split(" ", 1)[0]
            return start_response(status, headers, exc_info)

        if self.requests_in_flight is not None:
            self.requests_in_flight.inc()
        try:
            # make_wsgi_app renders the full body before returning
            body = self._metrics_app(environ, recording_start_response)
        finally:
            if self.requests_in_flight is not None:
                self.requests_in_flight.dec()
            if self._slots is not None:
                self._slots.release()

        self._count(status_holder.get("code", "500"))
        return body

    def _count(self, code: str):
        if self.requests_total is not None:
            self.requests_total.labels(code=code).inc()


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """WSGI server handling each request in its own thread."""

    daemon_threads = True


class _LoggingHandler(WSGIRequestHandler):
    """Route access logs to the exporter logger instead of stderr."""

    logger = logging.getLogger(__name__)

    def log_message(self, format, *args):
        self.logger.debug(f"{self.address_string()} {format % args}")


def make_exporter_server(
    app: ExporterApplication,
    host: str,
    port: int,
    logger: Optional[logging.Logger] = None
) -> WSGIServer:
    """
    Bind a threading WSGI server for the application.

    Args:
        app: WSGI application
        host: Interface to bind ("" for all)
        port: TCP port
        logger: Logger receiving access logs

    Returns:
        WSGIServer: Bound server; call serve_forever() to run it
    """
    handler_logger = logger or logging.getLogger(__name__)
    handler_class = type("ExporterRequestHandler", (_LoggingHandler,), {"logger": handler_logger})
    return make_server(host, port, app, ThreadingWSGIServer, handler_class=handler_class)
