"""
Parsers for cgroup v2 pseudo-file layouts.

cgroup v2 interface files come in three shapes:

    memory.current     5678                       single value
    memory.stat        anon 1234                  flat key/value lines
                       file 5678
    memory.pressure    some avg10=0.00 ...        nested key=value lines
                       full avg10=0.00 ...

A Parser is a small immutable value pairing one of these layouts with
the metric prefix its output keys start with.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from .logging import ContextAdapter, get_logger

logger = get_logger("parsers")


class ParseError(ValueError):
    """Raised when file content does not match the expected layout."""

    pass


class ParserKind(Enum):
    """Supported pseudo-file layouts."""

    SINGLE_VALUE = "single_value"  # one scalar, "max" means unlimited
    FLAT_KEY_VALUE = "flat_key_value"  # "key value" per line
    NESTED_KEY_VALUE = "nested_key_value"  # "group k1=v1 k2=v2" per line


class InvalidValuePolicy(Enum):
    """What line-oriented parsers do with values that are not numbers."""

    ZERO = "zero"  # report 0.0
    SKIP = "skip"  # drop the entry and log a warning


@dataclass(frozen=True)
class Parser:
    """
    A parsing strategy bound to a metric prefix.

    Attributes:
        kind: File layout
        prefix: Prefix of every produced metric name
        invalid_values: Handling of non-numeric values in line layouts
    """

    kind: ParserKind
    prefix: str
    invalid_values: InvalidValuePolicy = InvalidValuePolicy.ZERO

    def parse(self, text: str, log: logging.Logger | ContextAdapter | None = None) -> dict[str, float]:
        """Parse raw file content, see parse()."""
        return parse(self, text, log)


def parse(
    parser: Parser,
    text: str,
    log: logging.Logger | ContextAdapter | None = None,
) -> dict[str, float]:
    """
    Parse raw pseudo-file content into metric values.

    Args:
        parser: Parser describing layout and prefix
        text: Complete file content
        log: Logger for malformed line warnings (module logger if None)

    Returns:
        Mapping of metric name to value

    Raises:
        ParseError: Content is unusable as a whole (single value layout)
    """
    log = log or logger

    if parser.kind is ParserKind.SINGLE_VALUE:
        return _parse_single_value(parser, text, log)
    if parser.kind is ParserKind.FLAT_KEY_VALUE:
        return _parse_flat_key_value(parser, text, log)
    if parser.kind is ParserKind.NESTED_KEY_VALUE:
        return _parse_nested_key_value(parser, text, log)
    raise ValueError(f"Unknown parser kind: {parser.kind!r}")


def _parse_single_value(parser: Parser, text: str, log) -> dict[str, float]:
    content = text.strip()

    # cgroup v2 writes "max" for "no limit"
    if content == "max":
        log.debug("Converting max to +Inf")
        return {parser.prefix: math.inf}

    try:
        value = float(content)
    except ValueError as e:
        raise ParseError(f"expected a single numeric value, got {content!r}") from e

    return {parser.prefix: value}


def _to_float(parser: Parser, name: str, raw: str, log) -> float | None:
    """Convert a value token according to the parser's invalid value policy."""
    try:
        return float(raw)
    except ValueError:
        if parser.invalid_values is InvalidValuePolicy.SKIP:
            log.warning(f"Skipping {name}: value {raw!r} is not a number")
            return None
        return 0.0


def _parse_flat_key_value(parser: Parser, text: str, log) -> dict[str, float]:
    metrics: dict[str, float] = {}

    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        if len(parts) != 2:
            log.warning(f"expected 2 fields in key value line, got {len(parts)}: {line!r}")
            continue

        name = f"{parser.prefix}_{parts[0]}"
        value = _to_float(parser, name, parts[1], log)
        if value is not None:
            metrics[name] = value

    return metrics


def _parse_nested_key_value(parser: Parser, text: str, log) -> dict[str, float]:
    metrics: dict[str, float] = {}

    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        if len(parts) < 2:
            log.warning(f"expected at least 2 fields in nested key value line, got {len(parts)}: {line!r}")
            continue

        group = parts[0]
        for token in parts[1:]:
            pair = token.split("=")
            if len(pair) != 2:
                log.warning(f"failed to parse {token!r} as key=value")
                continue

            name = f"{parser.prefix}_{group}_{pair[0]}"
            value = _to_float(parser, name, pair[1], log)
            if value is not None:
                metrics[name] = value

    return metrics
