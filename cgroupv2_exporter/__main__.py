"""
Entry point for the cgroupv2 exporter.

Usage:
    python -m cgroupv2_exporter --cgroup '/sys/fs/cgroup/system.slice/*.service'
    python -m cgroupv2_exporter -c /etc/cgroupv2-exporter/config.conf --collector.memory.stat
    python -m cgroupv2_exporter --help
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence

from . import __version__
from .app import apply_collector_config, resolve_cgroups, run_app
from .collectors import CollectorConfigError, CollectorRegistry, build_registry
from .config.loader import ConfigError, ConfigLoader
from .config.schema import Config, SchemaError, parse_listen_address
from .logging import LogConfig, get_logger, setup_logging
from .parsers import InvalidValuePolicy

logger = get_logger("main")

COLLECTOR_DEST_PREFIX = "collector:"


def build_arg_parser(registry: CollectorRegistry) -> argparse.ArgumentParser:
    """
    Build the command line parser.

    Every registered collector gets a --collector.<name> / --no-collector.<name>
    switch. Switches left at None were not given on the command line.
    """
    parser = argparse.ArgumentParser(
        prog="cgroupv2-exporter",
        description="Prometheus exporter for cgroup v2 interface files",
    )

    parser.add_argument(
        "-c", "--config",
        metavar="PATH",
        help="Path to configuration file",
    )

    web = parser.add_argument_group("web")
    web.add_argument(
        "--web.listen-address",
        dest="listen_address",
        metavar="[HOST]:PORT",
        help="Address to listen on for web interface and telemetry (default: :9753)",
    )
    web.add_argument(
        "--web.telemetry-path",
        dest="telemetry_path",
        metavar="PATH",
        help="Path under which to expose metrics (default: /metrics)",
    )
    web.add_argument(
        "--web.disable-exporter-metrics",
        dest="disable_exporter_metrics",
        action="store_true",
        help="Exclude metrics about the exporter process itself",
    )

    collectors = parser.add_argument_group("collectors")
    collectors.add_argument(
        "--cgroup",
        dest="cgroups",
        action="append",
        metavar="PATH",
        help="cgroup directory or glob pattern to monitor (repeatable, default: cgroup2 root)",
    )
    collectors.add_argument(
        "--collect",
        dest="only",
        action="append",
        metavar="NAME",
        help="Only run this collector when a request names none (repeatable)",
    )
    collectors.add_argument(
        "--collector.disable-defaults",
        dest="disable_defaults",
        action="store_true",
        help="Disable all collectors not explicitly enabled",
    )
    collectors.add_argument(
        "--parser.invalid-values",
        dest="invalid_values",
        choices=[p.value for p in InvalidValuePolicy],
        help="Report non-numeric values as zero or skip them (default: zero)",
    )
    for entry in registry.entries():
        state = "enabled" if entry.default_enabled else "disabled"
        collectors.add_argument(
            f"--collector.{entry.name}",
            dest=f"{COLLECTOR_DEST_PREFIX}{entry.name}",
            action=argparse.BooleanOptionalAction,
            default=None,
            help=f"Enable the {entry.name} collector (default: {state})",
        )

    log = parser.add_argument_group("logging")
    log.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging (INFO level)",
    )
    log.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging (DEBUG level)",
    )
    log.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (only errors)",
    )
    log.add_argument(
        "--log-file",
        metavar="PATH",
        help="Write logs to file",
    )
    log.add_argument(
        "--log-format",
        choices=["text", "logfmt"],
        help="Log line format (default: text)",
    )
    log.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and exit",
    )
    parser.add_argument(
        "--list-collectors",
        action="store_true",
        help="List available collectors and exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def apply_args(config: Config, args: argparse.Namespace) -> Config:
    """
    Overlay command line arguments on a configuration.

    Raises:
        SchemaError: Malformed listen address
    """
    if args.listen_address:
        config.web.listen_address, config.web.port = parse_listen_address(args.listen_address)
    if args.telemetry_path:
        config.web.telemetry_path = args.telemetry_path
    if args.disable_exporter_metrics:
        config.web.exporter_metrics = False

    if args.cgroups:
        config.cgroups.paths = list(args.cgroups)
    if args.only:
        config.collectors.only = list(args.only)
    if args.disable_defaults:
        config.collectors.disable_defaults = True
    if args.invalid_values:
        config.collectors.invalid_values = InvalidValuePolicy(args.invalid_values)

    for dest, value in vars(args).items():
        if dest.startswith(COLLECTOR_DEST_PREFIX) and value is not None:
            config.collectors.overrides[dest[len(COLLECTOR_DEST_PREFIX):]] = value

    return config


def build_log_config(config: Config, args: argparse.Namespace) -> LogConfig:
    """Merge file logging settings with command line flags (flags win)."""
    log_config = LogConfig(
        console_level=config.logging.level,
        console_colors=config.logging.colors,
        console_format=config.logging.format,
        file_enabled=config.logging.file is not None,
        file_path=config.logging.file or LogConfig.file_path,
        file_level=config.logging.file_level,
        file_max_bytes=config.logging.file_max_size * 1024 * 1024,
        file_backup_count=config.logging.file_keep,
    )

    if args.debug:
        log_config.console_level = "debug"
    elif args.verbose:
        log_config.console_level = "info"
    elif args.quiet:
        log_config.console_level = "error"

    if args.no_color:
        log_config.console_colors = False
    if args.log_format:
        log_config.console_format = args.log_format
    if args.log_file:
        log_config.file_enabled = True
        log_config.file_path = args.log_file

    return log_config


def list_collectors(registry: CollectorRegistry) -> int:
    """Print available collectors with their default state."""
    for entry in registry.entries():
        state = "enabled" if entry.default_enabled else "disabled"
        print(f"{entry.name:24} {state}")
    return 0


def validate_config(config: Config, loader: ConfigLoader) -> int:
    """Validate the merged configuration and print a summary."""
    registry = build_registry(config.collectors.invalid_values)
    warnings = loader.validate(config, registry.names())

    if warnings:
        print(f"Configuration warnings ({len(warnings)}):")
        for warning in warnings:
            print(f"  - {warning}")

    try:
        apply_collector_config(registry, config.collectors)
        cgroups = resolve_cgroups(config)
        collectors = registry.resolve(cgroups, config.collectors.only)
    except CollectorConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    print("\nConfiguration summary:")
    print(f"  Listen: {config.web.listen_address or '0.0.0.0'}:{config.web.port}{config.web.telemetry_path}")
    print(f"  cgroups: {len(cgroups)}")
    for cgroup in cgroups:
        print(f"    {cgroup}")
    print(f"  Collectors: {', '.join(sorted(collectors)) or 'none'}")
    print(f"  Invalid values: {config.collectors.invalid_values.value}")

    print("\nConfiguration is valid!")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = build_arg_parser(build_registry())
    args = parser.parse_args(argv)

    if args.list_collectors:
        return list_collectors(build_registry())

    loader = ConfigLoader()
    try:
        config = loader.load_file(args.config) if args.config else Config()
        config = apply_args(config, args)
    except (ConfigError, SchemaError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(build_log_config(config, args))

    if args.validate:
        return validate_config(config, loader)

    if args.config:
        logger.info(f"Loaded configuration from {args.config}")
    for warning in loader.validate(config, build_registry().names()):
        logger.warning(f"Config warning: {warning}")

    try:
        asyncio.run(run_app(config))
        return 0
    except CollectorConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
