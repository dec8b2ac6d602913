"""
HTTP endpoint serving the Prometheus exposition.

Requests may restrict the scrape to some collectors:
    GET /metrics?collect[]=memory.current&collect[]=memory.pressure

The server handles one request at a time, which also serializes scrapes
touching the same collector instances.
"""

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from urllib.parse import parse_qs
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry as MetricsRegistry, generate_latest
from prometheus_client import PlatformCollector, ProcessCollector

from .collectors.registry import CollectorConfigError, CollectorRegistry
from .const import APP_NAME, APP_VERSION
from .exporter import CgroupV2Collector
from .logging import get_logger

logger = get_logger("web")

LANDING_PAGE = """<html>
<head><title>{name}</title></head>
<body>
<h1>{name} {version}</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


class QuietRequestHandler(WSGIRequestHandler):
    """Request handler logging through the application logger."""

    def log_message(self, format: str, *args) -> None:
        logger.debug(f"{self.address_string()} {format % args}")


class MetricsApp:
    """
    WSGI application exposing cgroup metrics.

    Each request resolves its collectors from the registry (instances are
    cached there) and scrapes them into a fresh prometheus registry.
    """

    def __init__(
        self,
        registry: CollectorRegistry,
        cgroups: Sequence[str | Path],
        telemetry_path: str = "/metrics",
        default_filters: Iterable[str] = (),
        exporter_metrics: bool = True,
    ):
        """
        Args:
            registry: Configured collector registry
            cgroups: Monitored cgroup directories
            telemetry_path: URL path of the metrics endpoint
            default_filters: Collectors used when a request names none
            exporter_metrics: Include process and platform metrics of the exporter
        """
        self.registry = registry
        self.cgroups = list(cgroups)
        self.telemetry_path = telemetry_path
        self.default_filters = list(default_filters)
        self.exporter_metrics = exporter_metrics

    def render(self, filters: Sequence[str] = ()) -> bytes:
        """
        Scrape and render metrics in the text exposition format.

        Raises:
            CollectorConfigError: A filter names an unknown or disabled collector
        """
        collectors = self.registry.resolve(self.cgroups, filters)

        metrics_registry = MetricsRegistry(auto_describe=False)
        metrics_registry.register(CgroupV2Collector(collectors))
        if self.exporter_metrics and not filters:
            ProcessCollector(registry=metrics_registry)
            PlatformCollector(registry=metrics_registry)

        return generate_latest(metrics_registry)

    def __call__(self, environ: dict, start_response: Callable) -> list[bytes]:
        path = environ.get("PATH_INFO") or "/"

        if path == "/":
            body = LANDING_PAGE.format(name=APP_NAME, version=APP_VERSION, path=self.telemetry_path)
            start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
            return [body.encode("utf-8")]

        if path != self.telemetry_path:
            start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
            return [b"Not Found\n"]

        params = parse_qs(environ.get("QUERY_STRING", ""))
        filters = params.get("collect[]") or self.default_filters

        try:
            output = self.render(filters)
        except CollectorConfigError as e:
            logger.warning(f"Couldn't create filtered metrics handler: {e}")
            start_response("400 Bad Request", [("Content-Type", "text/plain; charset=utf-8")])
            return [f"Couldn't create filtered metrics handler: {e}\n".encode("utf-8")]

        start_response("200 OK", [("Content-Type", CONTENT_TYPE_LATEST)])
        return [output]


def create_server(app: MetricsApp, host: str, port: int) -> WSGIServer:
    """
    Bind the HTTP server.

    Args:
        app: WSGI application
        host: Listen address ("" for all interfaces)
        port: Listen port

    Returns:
        Bound server; call serve_forever() to start handling requests
    """
    return make_server(host, port, app, handler_class=QuietRequestHandler)
