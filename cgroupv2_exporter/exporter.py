"""
Scrape orchestrator.

CgroupV2Collector is a prometheus_client custom collector. Each call to
collect() runs every resolved collector concurrently on a fresh event
loop and reports, per collector, how long it took and whether it worked:

    cgroupv2_scrape_collector_duration_seconds{collector="memory.stat"} 0.0012
    cgroupv2_scrape_collector_success{collector="memory.stat"} 1.0
"""

import asyncio
import time
from collections.abc import Iterable, Iterator, Mapping

from prometheus_client.core import GaugeMetricFamily, Metric

from .collectors.base import Collector, MetricSink, NoDataError, ScrapeResult
from .const import NAMESPACE
from .logging import bind_logger, get_logger

logger = get_logger("exporter")

SCRAPE_DURATION_NAME = f"{NAMESPACE}_scrape_collector_duration_seconds"
SCRAPE_SUCCESS_NAME = f"{NAMESPACE}_scrape_collector_success"


def _bookkeeping_family(name: str, documentation: str, collector: str, value: float) -> GaugeMetricFamily:
    family = GaugeMetricFamily(name, documentation, labels=["collector"])
    family.add_metric([collector], value)
    return family


async def execute(name: str, collector: Collector, sink: MetricSink) -> ScrapeResult:
    """
    Run one collector and publish its duration and success samples.

    Never raises: failures are logged and reported as success=0.

    Args:
        name: Collector name used as label value
        collector: Collector to run
        sink: Output queue of the scrape

    Returns:
        ScrapeResult describing the run
    """
    log = bind_logger(logger, collector=name)
    error: BaseException | None = None

    begin = time.perf_counter()
    try:
        await collector.update(sink)
    except Exception as e:
        error = e
    duration = time.perf_counter() - begin

    if error is None:
        log.debug("collector succeeded", extra={"duration_seconds": duration})
    elif isinstance(error, NoDataError):
        log.debug("collector returned no data", extra={"duration_seconds": duration, "err": error})
    else:
        log.error("collector failed", extra={"duration_seconds": duration, "err": error})

    await sink.put(
        _bookkeeping_family(
            SCRAPE_DURATION_NAME, "cgroupv2_exporter: Duration of a collector scrape.", name, duration
        )
    )
    await sink.put(
        _bookkeeping_family(
            SCRAPE_SUCCESS_NAME,
            "cgroupv2_exporter: Whether a collector succeeded.",
            name,
            1.0 if error is None else 0.0,
        )
    )

    return ScrapeResult(name=name, duration=duration, success=error is None, error=error)


def merge_families(families: Iterable[Metric]) -> list[Metric]:
    """
    Merge metric families sharing a name.

    Collectors publish a gauge's complete state after every update, so one
    scrape can contain several snapshots of the same family. For every
    (sample name, labels) pair the last value wins; family order follows
    first appearance.

    Args:
        families: Families in publication order

    Returns:
        One family per name
    """
    merged: dict[str, tuple[Metric, dict]] = {}

    for family in families:
        if family.name not in merged:
            merged[family.name] = (family, {})
        samples = merged[family.name][1]
        for sample in family.samples:
            key = (sample.name, tuple(sorted(sample.labels.items())))
            samples[key] = sample

    result = []
    for first, samples in merged.values():
        combined = Metric(first.name, first.documentation, first.type, first.unit)
        combined.samples = list(samples.values())
        result.append(combined)
    return result


def _drain(sink: MetricSink) -> list[Metric]:
    families = []
    while not sink.empty():
        families.append(sink.get_nowait())
    return families


class CgroupV2Collector:
    """
    Prometheus collector running a set of cgroup collectors per scrape.

    Usage:
        collectors = registry.resolve(cgroups)
        prom_registry.register(CgroupV2Collector(collectors))
    """

    def __init__(self, collectors: Mapping[str, Collector]):
        """
        Args:
            collectors: Collectors to run, keyed by name
        """
        self.collectors = dict(collectors)
        self.last_results: list[ScrapeResult] = []

    def describe(self) -> list[Metric]:
        # Metric names are only known after reading files; registering
        # must not trigger a scrape.
        return []

    async def scrape(self) -> list[Metric]:
        """
        Run all collectors concurrently and gather their output.

        Returns:
            Merged metric families, bookkeeping included
        """
        sink: MetricSink = asyncio.Queue()

        results = await asyncio.gather(
            *(execute(name, collector, sink) for name, collector in self.collectors.items())
        )
        self.last_results = list(results)

        return merge_families(_drain(sink))

    def collect(self) -> Iterator[Metric]:
        """Run one scrape; called by prometheus_client from the HTTP thread."""
        yield from asyncio.run(self.scrape())
