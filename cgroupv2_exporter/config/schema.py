"""
Configuration schema with dataclasses for validation and type safety.

Defines all configuration sections, their fields and defaults.
"""

from dataclasses import dataclass, field

from ..const import DEFAULT_LISTEN_ADDRESS, DEFAULT_PORT, DEFAULT_TELEMETRY_PATH
from ..parsers import InvalidValuePolicy
from .parser import Block, ConfigDocument


class SchemaError(ValueError):
    """A configuration value has the wrong type or an unknown choice."""

    pass


def _bool(block: Block, name: str, default: bool) -> bool:
    value = block.get_value(name, default)
    if not isinstance(value, bool):
        raise SchemaError(f"'{name}' in {block.type} block must be on or off, got {value!r}")
    return value


def parse_listen_address(value: str) -> tuple[str, int]:
    """
    Split a listen address into host and port.

    Examples:
        ":9753"           -> ("", 9753)
        "127.0.0.1:9753"  -> ("127.0.0.1", 9753)
        "[::1]:9753"      -> ("::1", 9753)
    """
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit():
        raise SchemaError(f"invalid listen address {value!r}, expected [host]:port")
    return host.strip("[]"), int(port)


@dataclass
class WebConfig:
    """HTTP endpoint configuration."""

    listen_address: str = DEFAULT_LISTEN_ADDRESS
    port: int = DEFAULT_PORT
    telemetry_path: str = DEFAULT_TELEMETRY_PATH
    exporter_metrics: bool = True  # process/platform metrics of the exporter itself

    @classmethod
    def from_block(cls, block: Block | None) -> "WebConfig":
        """Create WebConfig from a parsed 'web' block."""
        if block is None:
            return cls()

        path = str(block.get_value("telemetry_path", DEFAULT_TELEMETRY_PATH))
        if not path.startswith("/"):
            raise SchemaError(f"telemetry_path must start with '/', got {path!r}")

        return cls(
            listen_address=str(block.get_value("listen_address", DEFAULT_LISTEN_ADDRESS)),
            port=int(block.get_value("port", DEFAULT_PORT)),
            telemetry_path=path,
            exporter_metrics=_bool(block, "exporter_metrics", True),
        )


@dataclass
class CgroupsConfig:
    """Monitored cgroup directories (paths or glob patterns)."""

    paths: list[str] = field(default_factory=list)  # empty = discovered cgroup2 root

    @classmethod
    def from_block(cls, block: Block | None) -> "CgroupsConfig":
        if block is None:
            return cls()
        return cls(paths=[str(p) for p in block.get_all_values("path")])


@dataclass
class CollectorsConfig:
    """
    Collector selection.

    Example:
        collectors {
            disable_defaults on;
            memory.current on;
            memory.stat on;
        }
    """

    disable_defaults: bool = False
    invalid_values: InvalidValuePolicy = InvalidValuePolicy.ZERO
    # Collectors run when a request does not name any
    only: list[str] = field(default_factory=list)
    # Explicit per-collector switches, collector name -> enabled
    overrides: dict[str, bool] = field(default_factory=dict)

    RESERVED = ("disable_defaults", "invalid_values", "only")

    @classmethod
    def from_block(cls, block: Block | None) -> "CollectorsConfig":
        if block is None:
            return cls()

        policy_str = str(block.get_value("invalid_values", InvalidValuePolicy.ZERO.value)).lower()
        try:
            policy = InvalidValuePolicy(policy_str)
        except ValueError:
            raise SchemaError(
                f"invalid_values must be one of "
                f"{', '.join(p.value for p in InvalidValuePolicy)}, got {policy_str!r}"
            ) from None

        overrides: dict[str, bool] = {}
        for directive in block.directives:
            if directive.name in cls.RESERVED:
                continue
            if not isinstance(directive.value, bool) or len(directive.values) != 1:
                raise SchemaError(
                    f"collector '{directive.name}' must be on or off (line {directive.line})"
                )
            overrides[directive.name] = directive.value

        return cls(
            disable_defaults=_bool(block, "disable_defaults", False),
            invalid_values=policy,
            only=[str(v) for v in block.get_all_values("only")],
            overrides=overrides,
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"  # debug, info, warning, error
    format: str = "text"  # text, logfmt
    file: str | None = None  # Log file path
    file_level: str = "debug"
    file_max_size: int = 10  # Max file size in MB
    file_keep: int = 5  # Number of backup files to keep
    colors: bool = True

    @classmethod
    def from_block(cls, block: Block | None) -> "LoggingConfig":
        if block is None:
            return cls()

        log_format = str(block.get_value("format", "text"))
        if log_format not in ("text", "logfmt"):
            raise SchemaError(f"logging format must be text or logfmt, got {log_format!r}")

        return cls(
            level=str(block.get_value("level", "info")),
            format=log_format,
            file=block.get_value("file"),
            file_level=str(block.get_value("file_level", "debug")),
            file_max_size=int(block.get_value("file_max_size", 10)),
            file_keep=int(block.get_value("file_keep", 5)),
            colors=_bool(block, "colors", True),
        )


@dataclass
class Config:
    """Complete exporter configuration."""

    web: WebConfig = field(default_factory=WebConfig)
    cgroups: CgroupsConfig = field(default_factory=CgroupsConfig)
    collectors: CollectorsConfig = field(default_factory=CollectorsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_document(cls, document: ConfigDocument) -> "Config":
        """Build the configuration from a parsed document."""
        return cls(
            web=WebConfig.from_block(document.get_block("web")),
            cgroups=CgroupsConfig.from_block(document.get_block("cgroups")),
            collectors=CollectorsConfig.from_block(document.get_block("collectors")),
            logging=LoggingConfig.from_block(document.get_block("logging")),
        )
