"""
Main application orchestrator.

Handles:
- Collector selection from configuration
- HTTP server lifecycle
- Graceful shutdown
"""

import asyncio
import signal
from pathlib import Path
from wsgiref.simple_server import WSGIServer

from .collectors import CollectorRegistry, build_registry
from .config.schema import CollectorsConfig, Config
from .const import APP_NAME
from .logging import get_logger
from .utils.cgroup import default_cgroup_root, expand_cgroup_paths
from .web import MetricsApp, create_server

logger = get_logger("app")


def apply_collector_config(registry: CollectorRegistry, config: CollectorsConfig) -> None:
    """
    Set enabled states on the registry.

    Explicit switches are applied first so disable_defaults spares them.

    Raises:
        CollectorConfigError: A switch names an unknown collector
    """
    for name, enabled in config.overrides.items():
        registry.set_enabled(name, enabled)

    if config.disable_defaults:
        registry.disable_defaults()


def resolve_cgroups(config: Config) -> list[Path]:
    """Get monitored directories, falling back to the cgroup2 root."""
    cgroups = expand_cgroup_paths(config.cgroups.paths)
    if not cgroups:
        cgroups = [default_cgroup_root()]
    return cgroups


class Application:
    """
    Main application class.

    Serves scrapes over HTTP until SIGINT or SIGTERM.
    """

    def __init__(self, config: Config, registry: CollectorRegistry):
        """
        Initialize application.

        Args:
            config: Application configuration
            registry: Collector registry, already configured
        """
        self.config = config
        self.registry = registry
        self.cgroups = resolve_cgroups(config)

        self.metrics_app = MetricsApp(
            registry,
            self.cgroups,
            telemetry_path=config.web.telemetry_path,
            default_filters=config.collectors.only,
            exporter_metrics=config.web.exporter_metrics,
        )

        self._server: WSGIServer | None = None
        self._server_task: asyncio.Future | None = None
        self._shutdown_event = asyncio.Event()

    def check_collectors(self) -> list[str]:
        """
        Resolve the default collector set once before serving.

        Configuration errors surface here instead of on the first scrape.

        Returns:
            Names of the collectors a plain scrape runs

        Raises:
            CollectorConfigError: Unknown or disabled collector in the only list
        """
        collectors = self.registry.resolve(self.cgroups, self.config.collectors.only)
        return sorted(collectors)

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._signal_handler)

    def _signal_handler(self) -> None:
        """Handle shutdown signals."""
        logger.info("Received shutdown signal")
        self._shutdown_event.set()

    async def start(self) -> None:
        """Start serving and block until shutdown."""
        logger.info(f"Starting {APP_NAME}")

        names = self.check_collectors()
        logger.info(f"Enabled collectors: {', '.join(names) if names else 'none'}")
        for cgroup in self.cgroups:
            logger.info(f"Monitoring cgroup {cgroup}")

        web = self.config.web
        self._server = create_server(self.metrics_app, web.listen_address, web.port)
        self._server_task = asyncio.ensure_future(asyncio.to_thread(self._server.serve_forever))
        logger.info(f"Listening on {web.listen_address or '0.0.0.0'}:{web.port}{web.telemetry_path}")

        self._setup_signal_handlers()

        await self._shutdown_event.wait()
        await self.stop()

    async def stop(self) -> None:
        """Stop the HTTP server."""
        logger.info(f"Stopping {APP_NAME}")

        if self._server is not None:
            # shutdown() blocks until serve_forever() returns
            await asyncio.to_thread(self._server.shutdown)
            if self._server_task is not None:
                await self._server_task
            self._server.server_close()
            self._server = None

        logger.info(f"{APP_NAME} stopped")

    async def run(self) -> None:
        """Run the application until shutdown."""
        try:
            await self.start()
        except Exception as e:
            logger.error(f"Application error: {e}")
            raise


async def run_app(config: Config) -> None:
    """
    Build the collector registry for a configuration and serve it.

    Args:
        config: Fully merged configuration (file and command line)

    Raises:
        CollectorConfigError: Invalid collector selection
    """
    registry = build_registry(config.collectors.invalid_values)
    apply_collector_config(registry, config.collectors)

    app = Application(config, registry)
    await app.run()
