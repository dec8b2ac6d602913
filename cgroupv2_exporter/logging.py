"""
Logging configuration for the cgroupv2 exporter.

Features:
- Console output with optional colors
- logfmt output (key=value pairs) for log shippers
- File output with rotation
- Key/value context bound to loggers (collector=, file=, dir=)
"""

import logging
import logging.handlers
import sys
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

ROOT_LOGGER = "cgroupv2_exporter"


# ANSI color codes for console output
class Colors:
    """ANSI color codes."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"

    BRIGHT_RED = "\033[91m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.DIM + Colors.CYAN,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.BOLD + Colors.BRIGHT_RED,
}

# Component colors for logger names
COMPONENT_COLORS = {
    "config": Colors.MAGENTA,
    "collector": Colors.CYAN,
    "parsers": Colors.BLUE,
    "exporter": Colors.GREEN,
    "web": Colors.BLUE,
}


def format_context(context: Mapping[str, Any] | None) -> str:
    """Render bound context as space separated key=value pairs."""
    if not context:
        return ""
    return " ".join(f"{key}={_logfmt_value(value)}" for key, value in context.items())


def _logfmt_value(value: Any) -> str:
    text = str(value)
    if text == "" or any(c in text for c in ' ="\n\t'):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    return text


class ContextAdapter(logging.LoggerAdapter):
    """
    Logger adapter carrying key/value context.

    Context accumulates with bind(), so a collector can hand a logger
    bound with ``collector=`` to a helper that adds ``dir=`` on top.
    Call-site ``extra`` is merged over the bound context.
    """

    def __init__(self, logger: logging.Logger, context: Mapping[str, Any] | None = None):
        super().__init__(logger, dict(context or {}))

    def bind(self, **context: Any) -> "ContextAdapter":
        merged = dict(self.extra or {})
        merged.update(context)
        return ContextAdapter(self.logger, merged)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        context = dict(self.extra or {})
        context.update(kwargs.pop("extra", None) or {})
        kwargs["extra"] = {"context": context}
        return msg, kwargs


def bind_logger(logger: logging.Logger | ContextAdapter, **context: Any) -> ContextAdapter:
    """Attach key/value context to a logger."""
    if isinstance(logger, ContextAdapter):
        return logger.bind(**context)
    return ContextAdapter(logger, context)


class ColoredFormatter(logging.Formatter):
    """
    Formatter that adds ANSI colors to log output.

    Colors are applied based on log level and component name. Bound
    context is appended after the message.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        use_colors: bool = True,
    ):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        original_levelname = record.levelname
        original_name = record.name

        if self.use_colors:
            level_color = LEVEL_COLORS.get(record.levelno, "")
            record.levelname = f"{level_color}{record.levelname:8}{Colors.RESET}"

            for key, color in COMPONENT_COLORS.items():
                if key in record.name.lower():
                    record.name = f"{color}{record.name}{Colors.RESET}"
                    break
        else:
            record.levelname = f"{record.levelname:8}"

        try:
            result = super().format(record)
        finally:
            record.levelname = original_levelname
            record.name = original_name

        context = format_context(getattr(record, "context", None))
        if context:
            if self.use_colors:
                context = f"{Colors.DIM}{context}{Colors.RESET}"
            result = f"{result} {context}"
        return result


class LogfmtFormatter(logging.Formatter):
    """
    Formatter producing logfmt lines.

    Example:
        ts=2024-01-01T10:00:00 level=error logger=cgroupv2_exporter.collectors
        msg="collector failed" collector=memory.stat err="..."
    """

    def __init__(self, datefmt: str | None = "%Y-%m-%dT%H:%M:%S"):
        super().__init__(datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        pairs: dict[str, Any] = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        pairs.update(getattr(record, "context", None) or {})
        if record.exc_info:
            pairs["exc"] = self.formatException(record.exc_info)
        return format_context(pairs)


@dataclass
class LogConfig:
    """Logging configuration."""

    # Console settings
    console_level: str = "INFO"
    console_colors: bool = True
    console_format: str = "text"  # text, logfmt

    # File settings
    file_enabled: bool = False
    file_path: str = "/var/log/cgroupv2-exporter/cgroupv2-exporter.log"
    file_level: str = "DEBUG"
    file_max_bytes: int = 10 * 1024 * 1024  # 10 MB
    file_backup_count: int = 5

    # Format
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"


def get_log_level(level_str: str) -> int:
    """Convert string log level to logging constant."""
    levels = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "warn": logging.WARNING,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
    }
    return levels.get(level_str.lower(), logging.INFO)


def setup_logging(config: LogConfig | None = None) -> None:
    """
    Configure logging for the application.

    Args:
        config: Logging configuration (uses defaults if None)
    """
    if config is None:
        config = LogConfig()

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG)  # Capture all, filter at handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(get_log_level(config.console_level))

    if config.console_format == "logfmt":
        console_handler.setFormatter(LogfmtFormatter())
    else:
        # Colors only make sense on a terminal
        use_colors = config.console_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        console_handler.setFormatter(
            ColoredFormatter(fmt=config.format, datefmt=config.date_format, use_colors=use_colors)
        )
    root_logger.addHandler(console_handler)

    if config.file_enabled:
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=config.file_max_bytes,
            backupCount=config.file_backup_count,
        )
        file_handler.setLevel(get_log_level(config.file_level))
        if config.console_format == "logfmt":
            file_handler.setFormatter(LogfmtFormatter())
        else:
            file_handler.setFormatter(
                ColoredFormatter(fmt=config.format, datefmt=config.date_format, use_colors=False)
            )
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a component.

    Args:
        name: Component name (will be prefixed with cgroupv2_exporter)

    Returns:
        Logger instance
    """
    if name.startswith(ROOT_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
