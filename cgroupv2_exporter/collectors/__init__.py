"""
Metric collectors for cgroup v2 interface files.
"""

from ..parsers import InvalidValuePolicy
from .base import Collector, NoDataError, ScrapeResult
from .files import FILE_COLLECTORS, FileCollector, register_file_collectors
from .registry import CollectorConfigError, CollectorRegistry, DuplicateCollectorError


def build_registry(invalid_values: InvalidValuePolicy = InvalidValuePolicy.ZERO) -> CollectorRegistry:
    """
    Create a registry holding every built-in collector.

    Args:
        invalid_values: Policy for non-numeric values in line-oriented files

    Returns:
        Registry with default enabled states
    """
    registry = CollectorRegistry()
    register_file_collectors(registry, invalid_values)
    return registry


__all__ = [
    "Collector",
    "NoDataError",
    "ScrapeResult",
    "FileCollector",
    "FILE_COLLECTORS",
    "CollectorRegistry",
    "CollectorConfigError",
    "DuplicateCollectorError",
    "build_registry",
    "register_file_collectors",
]
