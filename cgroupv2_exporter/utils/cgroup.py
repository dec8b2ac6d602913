"""
Utilities for locating cgroup v2 directories.

cgroup v2 layout:
- /sys/fs/cgroup/cgroup.controllers        (unified hierarchy marker)
- /sys/fs/cgroup/{path}/memory.current
- /sys/fs/cgroup/{path}/memory.pressure
"""

import glob
import re
from collections.abc import Iterable
from pathlib import Path

import psutil

from ..const import DEFAULT_CGROUP_ROOT
from ..logging import get_logger

logger = get_logger("config.cgroup")

CGROUP_V2_ROOT = Path(DEFAULT_CGROUP_ROOT)
CGROUP2_FSTYPE = "cgroup2"

_GLOB_MAGIC_RE = re.compile(r"[*?[]")


def find_cgroup2_mounts() -> list[Path]:
    """
    Find mounted cgroup v2 hierarchies.

    Returns:
        Mount points of every cgroup2 filesystem, in mount table order
    """
    try:
        partitions = psutil.disk_partitions(all=True)
    except OSError as e:
        logger.debug(f"Cannot read mount table: {e}")
        return []

    mounts = []
    for partition in partitions:
        if partition.fstype == CGROUP2_FSTYPE:
            mounts.append(Path(partition.mountpoint))
    return mounts


def default_cgroup_root() -> Path:
    """
    Get the cgroup directory monitored when none is configured.

    Returns:
        First cgroup2 mount point, or /sys/fs/cgroup
    """
    mounts = find_cgroup2_mounts()
    if mounts:
        return mounts[0]
    return CGROUP_V2_ROOT


def is_cgroup2_dir(path: str | Path) -> bool:
    """Check whether a directory belongs to a cgroup v2 hierarchy."""
    return (Path(path) / "cgroup.controllers").exists()


def expand_cgroup_paths(patterns: Iterable[str | Path]) -> list[Path]:
    """
    Expand configured cgroup paths.

    Glob patterns (``/sys/fs/cgroup/system.slice/*.service``) expand to
    the matching directories, sorted. Plain paths are kept as given even
    if they do not exist, so a missing cgroup shows up as a failing
    collector instead of vanishing silently.

    Args:
        patterns: Paths or glob patterns

    Returns:
        Directories without duplicates, in configuration order
    """
    result: list[Path] = []
    seen: set[Path] = set()

    for pattern in patterns:
        pattern = str(pattern)

        if _GLOB_MAGIC_RE.search(pattern):
            matches = [Path(p) for p in sorted(glob.glob(pattern)) if Path(p).is_dir()]
            if not matches:
                logger.warning(f"cgroup pattern matched no directories: {pattern}")
        else:
            matches = [Path(pattern)]

        for path in matches:
            if path not in seen:
                seen.add(path)
                result.append(path)

    return result
