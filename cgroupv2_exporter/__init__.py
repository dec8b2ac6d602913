"""
Prometheus exporter for cgroup v2 pseudo-files.
"""

from .const import APP_VERSION

__version__ = APP_VERSION
