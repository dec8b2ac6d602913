"""
Base collector interface for metric collection.

Collectors implement update(), which pushes prometheus metric families
onto the scrape's output queue. The orchestrator in exporter.py times
every update and reports its outcome.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass

from prometheus_client.core import Metric

# Output queue shared by all collectors of one scrape
MetricSink = asyncio.Queue


class NoDataError(Exception):
    """The collector found nothing to report, but nothing went wrong either."""

    def __init__(self, message: str = "collector returned no data"):
        super().__init__(message)


@dataclass
class ScrapeResult:
    """Outcome of one collector within one scrape."""

    name: str
    duration: float
    success: bool
    error: BaseException | None = None

    @property
    def no_data(self) -> bool:
        return isinstance(self.error, NoDataError)

    def __repr__(self) -> str:
        status = "OK" if self.success else f"ERROR: {self.error}"
        return f"ScrapeResult({self.name!r}, {self.duration:.4f}s, {status})"


class Collector(ABC):
    """
    Abstract base class for metric collectors.

    A collector instance lives for the whole process: the registry builds it
    once and reuses it for every scrape, so state kept on the instance (such
    as gauges) survives between scrapes.
    """

    def __init__(self, name: str):
        """
        Initialize collector.

        Args:
            name: Registry name of the collector
        """
        self.name = name

    @abstractmethod
    async def update(self, sink: MetricSink) -> None:
        """
        Collect current metrics and put them on the sink.

        Args:
            sink: Queue receiving prometheus Metric families

        Raises:
            NoDataError: Nothing to report
            Exception: Any failure; it is reported as success=0
        """
        pass

    @staticmethod
    async def emit(sink: MetricSink, metric: Metric) -> None:
        """Put one metric family on the sink."""
        await sink.put(metric)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
