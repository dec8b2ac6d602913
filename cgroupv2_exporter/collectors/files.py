"""
Generic cgroup v2 pseudo-file collector.

One FileCollector exists per interface file (memory.current, memory.stat,
...). On every scrape it reads that file in each monitored cgroup
directory and exposes the parsed values as gauges labeled by cgroup.

Example output for memory.pressure:
    cgroupv2_memory_pressure_some_avg10{cgroup="nginx_service"} 0.12
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from prometheus_client import Gauge

from ..const import NAMESPACE
from ..logging import bind_logger, get_logger
from ..parsers import InvalidValuePolicy, ParseError, Parser, ParserKind
from ..utils.naming import sanitize_metric_name
from .base import Collector, MetricSink

if TYPE_CHECKING:
    from .registry import CollectorRegistry

logger = get_logger("collectors")

CGROUP_LABEL = "cgroup"


def _read_file(path: Path) -> str:
    """Read a pseudo-file in one go; the handle is closed before returning."""
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()


class FileCollector(Collector):
    """
    Collector for a single pseudo-file across many cgroup directories.

    Gauges are created lazily the first time a metric name shows up and
    are kept for the lifetime of the collector. Values of cgroups that
    disappear are not removed.
    """

    def __init__(
        self,
        name: str,
        file_name: str,
        parser: Parser,
        cgroups: Sequence[str | Path],
    ):
        """
        Initialize file collector.

        Args:
            name: Registry name of the collector
            file_name: Pseudo-file to read inside every cgroup directory
            parser: Parser matching the file layout
            cgroups: Monitored cgroup directories
        """
        super().__init__(name)
        self.file_name = file_name
        self.parser = parser
        self.cgroups = [Path(c) for c in cgroups]
        self.gauges: dict[str, Gauge] = {}
        self.logger = bind_logger(logger, collector=name, file=file_name)

    def _gauge(self, metric_name: str) -> Gauge:
        """Get or create the gauge for a sanitized metric name."""
        gauge = self.gauges.get(metric_name)
        if gauge is None:
            gauge = Gauge(
                metric_name,
                f"metric {metric_name} from file {self.file_name}",
                [CGROUP_LABEL],
                namespace=NAMESPACE,
                registry=None,
            )
            self.gauges[metric_name] = gauge
        return gauge

    async def update(self, sink: MetricSink) -> None:
        """
        Read the file in every cgroup and publish the parsed values.

        The first unreadable or unparsable directory aborts the update;
        later directories are not read.
        """
        for directory in self.cgroups:
            log = self.logger.bind(dir=str(directory))
            path = directory / self.file_name

            try:
                content = await asyncio.to_thread(_read_file, path)
            except OSError as e:
                log.error(f"Failed to read {path}: {e}")
                raise

            try:
                metrics = self.parser.parse(content, log)
            except ParseError as e:
                log.error(f"Failed to parse {path}: {e}")
                raise

            cgroup = sanitize_metric_name(directory.name)
            for key, value in metrics.items():
                metric_name = sanitize_metric_name(key)
                gauge = self._gauge(metric_name)
                gauge.labels(cgroup).set(value)

                # Full gauge state, every cgroup seen so far
                for family in gauge.collect():
                    await self.emit(sink, family)

                log.debug(f"collected metric: {metric_name} value: {value} cgroup: {cgroup}")


@dataclass(frozen=True)
class FileCollectorSpec:
    """Static description of a built-in file collector."""

    file_name: str
    kind: ParserKind
    default_enabled: bool = True


# Every supported interface file, registered under its own name
FILE_COLLECTORS: tuple[FileCollectorSpec, ...] = (
    FileCollectorSpec("memory.pressure", ParserKind.NESTED_KEY_VALUE),
    FileCollectorSpec("memory.current", ParserKind.SINGLE_VALUE),
    FileCollectorSpec("memory.swap.current", ParserKind.SINGLE_VALUE),
    FileCollectorSpec("memory.high", ParserKind.SINGLE_VALUE),
    FileCollectorSpec("memory.stat", ParserKind.FLAT_KEY_VALUE, default_enabled=False),
    FileCollectorSpec("memory.max", ParserKind.SINGLE_VALUE, default_enabled=False),
    FileCollectorSpec("memory.min", ParserKind.SINGLE_VALUE, default_enabled=False),
    FileCollectorSpec("memory.low", ParserKind.SINGLE_VALUE, default_enabled=False),
    FileCollectorSpec("memory.swap.max", ParserKind.SINGLE_VALUE, default_enabled=False),
    FileCollectorSpec("memory.events", ParserKind.FLAT_KEY_VALUE, default_enabled=False),
    FileCollectorSpec("cpu.pressure", ParserKind.NESTED_KEY_VALUE, default_enabled=False),
    FileCollectorSpec("cpu.stat", ParserKind.FLAT_KEY_VALUE, default_enabled=False),
    FileCollectorSpec("io.pressure", ParserKind.NESTED_KEY_VALUE, default_enabled=False),
    FileCollectorSpec("io.stat", ParserKind.NESTED_KEY_VALUE, default_enabled=False),
    FileCollectorSpec("pids.current", ParserKind.SINGLE_VALUE, default_enabled=False),
    FileCollectorSpec("pids.max", ParserKind.SINGLE_VALUE, default_enabled=False),
)


def new_file_collector(
    spec: FileCollectorSpec,
    cgroups: Sequence[str | Path],
    invalid_values: InvalidValuePolicy = InvalidValuePolicy.ZERO,
) -> FileCollector:
    """
    Build the collector for one interface file.

    Args:
        spec: File description
        cgroups: Monitored cgroup directories
        invalid_values: Policy for non-numeric values

    Returns:
        FileCollector named after the file
    """
    parser = Parser(
        kind=spec.kind,
        prefix=sanitize_metric_name(spec.file_name),
        invalid_values=invalid_values,
    )
    return FileCollector(spec.file_name, spec.file_name, parser, cgroups)


def register_file_collectors(
    registry: "CollectorRegistry",
    invalid_values: InvalidValuePolicy = InvalidValuePolicy.ZERO,
) -> None:
    """
    Register a collector for every supported interface file.

    Args:
        registry: Registry to fill
        invalid_values: Policy handed to every line-oriented parser
    """
    for spec in FILE_COLLECTORS:
        registry.register(
            spec.file_name,
            spec.default_enabled,
            partial(new_file_collector, spec, invalid_values=invalid_values),
        )
