"""
Configuration loader with file reading and validation.
"""

from collections.abc import Iterable
from pathlib import Path

from ..utils.cgroup import expand_cgroup_paths, is_cgroup2_dir
from .lexer import LexerError
from .parser import Block, ConfigDocument, ConfigSyntaxError, parse_config, parse_config_file
from .schema import Config, SchemaError


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


class ConfigLoader:
    """
    Loads and validates configuration from files or strings.

    Usage:
        loader = ConfigLoader()
        config = loader.load_file("/etc/cgroupv2-exporter/config.conf")
        warnings = loader.validate(config, registry.names())
    """

    # Known directives for each block type
    KNOWN_DIRECTIVES = {
        "web": {"listen_address", "port", "telemetry_path", "exporter_metrics"},
        "cgroups": {"path"},
        "logging": {"level", "format", "file", "file_level", "file_max_size", "file_keep", "colors"},
    }

    def __init__(self):
        self.last_document: ConfigDocument | None = None

    def load_file(self, path: str | Path) -> Config:
        """
        Load configuration from a file.

        Args:
            path: Path to the configuration file

        Returns:
            Validated Config object

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
        if not path.is_file():
            raise ConfigError(f"Not a file: {path}")

        try:
            document = parse_config_file(path)
        except OSError as e:
            raise ConfigError(f"Failed to read configuration: {e}") from e
        except (LexerError, ConfigSyntaxError) as e:
            raise ConfigError(f"Failed to parse configuration {path}: {e}") from e
        return self._build(document)

    def load_string(self, source: str, filename: str = "<string>") -> Config:
        """
        Load configuration from a string.

        Raises:
            ConfigError: If configuration cannot be parsed
        """
        try:
            document = parse_config(source, filename)
        except (LexerError, ConfigSyntaxError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e
        return self._build(document)

    def _build(self, document: ConfigDocument) -> Config:
        self.last_document = document
        try:
            return Config.from_document(document)
        except (SchemaError, ValueError, TypeError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def validate(self, config: Config, collector_names: Iterable[str] = ()) -> list[str]:
        """
        Validate configuration and return list of warnings.

        Args:
            config: Configuration to validate
            collector_names: Registered collectors; unknown names are reported

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []
        known_collectors = set(collector_names)

        if self.last_document:
            warnings.extend(self._check_unknown_directives(self.last_document))

        if known_collectors:
            for name in config.collectors.overrides:
                if name not in known_collectors:
                    warnings.append(f"Unknown collector '{name}' in collectors block")
            for name in config.collectors.only:
                if name not in known_collectors:
                    warnings.append(f"Unknown collector '{name}' in collectors only list")

        for path in expand_cgroup_paths(config.cgroups.paths):
            if not path.is_dir():
                warnings.append(f"cgroup directory does not exist: {path}")
            elif not is_cgroup2_dir(path):
                warnings.append(f"Not a cgroup v2 directory: {path}")

        if not 0 < config.web.port < 65536:
            warnings.append(f"Port out of range: {config.web.port}")

        return warnings

    def _check_unknown_directives(self, document: ConfigDocument) -> list[str]:
        """Check for unknown blocks and directives in parsed document."""
        warnings = []

        for directive in document.directives:
            warnings.append(f"Unknown top-level directive '{directive.name}' (line {directive.line})")

        for block in document.blocks:
            if block.type == "collectors":
                # Every other directive is a collector name, checked in validate()
                self._check_nested(block, warnings)
                continue

            known = self.KNOWN_DIRECTIVES.get(block.type)
            if known is None:
                warnings.append(f"Unknown block '{block.type}' (line {block.line})")
                continue

            for directive in block.directives:
                if directive.name not in known:
                    warnings.append(
                        f"Unknown directive '{directive.name}' in {block.type} block (line {directive.line})"
                    )
            self._check_nested(block, warnings)

        return warnings

    @staticmethod
    def _check_nested(block: Block, warnings: list[str]) -> None:
        for nested in block.blocks:
            warnings.append(f"Unexpected block '{nested.type}' inside {block.type} (line {nested.line})")


def load_config(path: str | Path) -> Config:
    """
    Convenience function to load configuration from a file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated Config object
    """
    return ConfigLoader().load_file(path)

