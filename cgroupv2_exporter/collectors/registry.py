"""
Collector registry.

Maps collector names to factories and enabled flags. The registry is
filled once at startup, configured from command line and config file
before the first scrape, and then only used to resolve the set of
collectors for a scrape.
"""

import threading
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..logging import get_logger
from .base import Collector

logger = get_logger("collectors.registry")

CollectorFactory = Callable[[Sequence[str | Path]], Collector]


class CollectorConfigError(Exception):
    """Unknown or disabled collector requested by configuration."""

    pass


class DuplicateCollectorError(ValueError):
    """A collector name was registered twice."""

    pass


@dataclass
class RegistrationEntry:
    """A registered collector and its enabled state."""

    name: str
    default_enabled: bool
    factory: CollectorFactory
    enabled: bool = field(init=False)
    # Explicitly enabled or disabled by configuration
    forced: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.enabled = self.default_enabled


class CollectorRegistry:
    """
    Registry of available collectors.

    Usage:
        registry = CollectorRegistry()
        register_file_collectors(registry)
        registry.set_enabled("memory.stat", True)
        collectors = registry.resolve(["/sys/fs/cgroup"])
    """

    def __init__(self):
        self._entries: dict[str, RegistrationEntry] = {}
        self._instances: dict[str, Collector] = {}
        self._instances_lock = threading.Lock()

    def register(self, name: str, default_enabled: bool, factory: CollectorFactory) -> None:
        """
        Register a collector.

        Args:
            name: Unique collector name
            default_enabled: Whether the collector runs unless configured otherwise
            factory: Callable building the collector from a cgroup directory list

        Raises:
            DuplicateCollectorError: Name already registered
        """
        if name in self._entries:
            raise DuplicateCollectorError(f"collector already registered: {name}")
        self._entries[name] = RegistrationEntry(name, default_enabled, factory)

    def _entry(self, name: str) -> RegistrationEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise CollectorConfigError(f"missing collector: {name}") from None

    def set_enabled(self, name: str, enabled: bool) -> None:
        """
        Enable or disable a collector from configuration.

        The collector is marked as forced, so disable_defaults() leaves it alone.

        Raises:
            CollectorConfigError: Unknown collector
        """
        entry = self._entry(name)
        entry.enabled = enabled
        entry.forced = True

    def disable_defaults(self) -> None:
        """Disable every collector that was not explicitly configured."""
        for entry in self._entries.values():
            if not entry.forced:
                entry.enabled = False

    def is_enabled(self, name: str) -> bool:
        return self._entry(name).enabled

    def names(self) -> list[str]:
        """Registered collector names in registration order."""
        return list(self._entries)

    def entries(self) -> list[RegistrationEntry]:
        return list(self._entries.values())

    def resolve(
        self,
        cgroups: Sequence[str | Path],
        filters: Iterable[str] = (),
    ) -> dict[str, Collector]:
        """
        Get the collectors to run.

        Instances are built on first use and cached, so every later call
        returns the same objects regardless of its arguments.

        Args:
            cgroups: Monitored cgroup directories (used on construction only)
            filters: Restrict to these collector names; empty means all enabled

        Returns:
            Mapping of collector name to instance

        Raises:
            CollectorConfigError: A filter names an unknown or disabled collector
        """
        wanted: set[str] = set()
        for name in filters:
            entry = self._entry(name)
            if not entry.enabled:
                raise CollectorConfigError(f"disabled collector: {name}")
            wanted.add(name)

        collectors: dict[str, Collector] = {}
        with self._instances_lock:
            for name, entry in self._entries.items():
                if not entry.enabled or (wanted and name not in wanted):
                    continue

                collector = self._instances.get(name)
                if collector is None:
                    collector = entry.factory(cgroups)
                    self._instances[name] = collector
                    logger.debug(f"Created collector {name}")
                collectors[name] = collector

        return collectors

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
