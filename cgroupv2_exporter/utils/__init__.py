"""
Utility functions and helpers.
"""

from .cgroup import default_cgroup_root, expand_cgroup_paths, find_cgroup2_mounts, is_cgroup2_dir
from .naming import sanitize_metric_name, unescape

__all__ = [
    "sanitize_metric_name",
    "unescape",
    "default_cgroup_root",
    "expand_cgroup_paths",
    "find_cgroup2_mounts",
    "is_cgroup2_dir",
]
