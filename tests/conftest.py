"""
Pytest configuration and fixtures.
"""

import logging
from pathlib import Path

import pytest

from cgroupv2_exporter.logging import ROOT_LOGGER


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging() during a test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_cgroup(tmp_path: Path):
    """Factory creating a fake cgroup directory with interface files."""

    def _make(name: str, **files: str) -> Path:
        directory = tmp_path / name
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "cgroup.controllers").write_text("cpu memory io pids\n")
        for file_name, content in files.items():
            (directory / file_name.replace("_", ".")).write_text(content)
        return directory

    return _make


@pytest.fixture
def cgroup_tree(make_cgroup) -> list[Path]:
    """Two cgroups with the default-enabled interface files."""
    pressure = (
        "some avg10=1.23 avg60=4.56 avg300=0.00 total=100\n"
        "full avg10=5.67 avg60=8.90 avg300=0.00 total=200\n"
    )
    return [
        make_cgroup(
            "nginx.service",
            memory_current="5678\n",
            memory_high="max\n",
            memory_swap_current="0\n",
            memory_pressure=pressure,
            memory_stat="anon 1024\nfile 2048\n",
        ),
        make_cgroup(
            "postgres.service",
            memory_current="1234\n",
            memory_high="1073741824\n",
            memory_swap_current="4096\n",
            memory_pressure=pressure,
            memory_stat="anon 10\nfile 20\n",
        ),
    ]
