"""
Tests for the scrape orchestrator.
"""

import asyncio
import logging

import pytest
from prometheus_client.core import GaugeMetricFamily

from cgroupv2_exporter.collectors.base import Collector, NoDataError
from cgroupv2_exporter.exporter import (
    SCRAPE_DURATION_NAME,
    SCRAPE_SUCCESS_NAME,
    CgroupV2Collector,
    merge_families,
)


class StaticCollector(Collector):
    """Collector emitting one fixed gauge."""

    def __init__(self, name: str, value: float = 1.0):
        super().__init__(name)
        self.value = value

    async def update(self, sink) -> None:
        family = GaugeMetricFamily(f"test_{self.name}", "static value", labels=["cgroup"])
        family.add_metric(["a"], self.value)
        await self.emit(sink, family)


class FailingCollector(Collector):
    def __init__(self, name: str, error: Exception):
        super().__init__(name)
        self.error = error

    async def update(self, sink) -> None:
        raise self.error


class WaitingCollector(Collector):
    """Collector that only finishes once another one has started."""

    def __init__(self, name: str, wait_for: asyncio.Event, signal: asyncio.Event):
        super().__init__(name)
        self.wait_for = wait_for
        self.signal = signal

    async def update(self, sink) -> None:
        self.signal.set()
        await self.wait_for.wait()


def by_name(families) -> dict:
    return {f.name: f for f in families}


def bookkeeping(families, name: str) -> dict[str, float]:
    return {s.labels["collector"]: s.value for s in by_name(families)[name].samples}


def test_reports_success_and_duration() -> None:
    orchestrator = CgroupV2Collector(
        {"ok": StaticCollector("ok"), "broken": FailingCollector("broken", OSError("boom"))}
    )

    families = asyncio.run(orchestrator.scrape())

    assert bookkeeping(families, SCRAPE_SUCCESS_NAME) == {"ok": 1.0, "broken": 0.0}
    durations = bookkeeping(families, SCRAPE_DURATION_NAME)
    assert set(durations) == {"ok", "broken"}
    assert all(d >= 0 for d in durations.values())
    assert "test_ok" in by_name(families)


def test_scrape_results_are_recorded() -> None:
    error = OSError("boom")
    orchestrator = CgroupV2Collector({"broken": FailingCollector("broken", error)})

    asyncio.run(orchestrator.scrape())

    (result,) = orchestrator.last_results
    assert result.name == "broken"
    assert not result.success
    assert result.error is error
    assert not result.no_data


def test_failure_logged_as_error(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)
    orchestrator = CgroupV2Collector({"broken": FailingCollector("broken", OSError("boom"))})

    asyncio.run(orchestrator.scrape())

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].getMessage() == "collector failed"


def test_no_data_is_not_an_error(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)
    orchestrator = CgroupV2Collector({"empty": FailingCollector("empty", NoDataError())})

    families = asyncio.run(orchestrator.scrape())

    assert bookkeeping(families, SCRAPE_SUCCESS_NAME) == {"empty": 0.0}
    assert orchestrator.last_results[0].no_data
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
    assert "collector returned no data" in caplog.text


def test_collectors_run_concurrently() -> None:
    async def run():
        first_started = asyncio.Event()
        second_started = asyncio.Event()
        orchestrator = CgroupV2Collector(
            {
                "first": WaitingCollector("first", second_started, first_started),
                "second": WaitingCollector("second", first_started, second_started),
            }
        )
        return await asyncio.wait_for(orchestrator.scrape(), timeout=5)

    families = asyncio.run(run())

    assert bookkeeping(families, SCRAPE_SUCCESS_NAME) == {"first": 1.0, "second": 1.0}


def test_collect_is_synchronous() -> None:
    orchestrator = CgroupV2Collector({"ok": StaticCollector("ok", 42.0)})

    families = by_name(orchestrator.collect())

    assert families["test_ok"].samples[0].value == 42.0
    assert SCRAPE_SUCCESS_NAME in families


def test_empty_collector_set() -> None:
    assert asyncio.run(CgroupV2Collector({}).scrape()) == []


def test_describe_does_not_scrape() -> None:
    orchestrator = CgroupV2Collector({"broken": FailingCollector("broken", OSError("boom"))})

    assert orchestrator.describe() == []
    assert orchestrator.last_results == []


class TestMergeFamilies:
    def snapshot(self, values: dict[str, float]) -> GaugeMetricFamily:
        family = GaugeMetricFamily("cgroupv2_memory_current", "memory", labels=["cgroup"])
        for cgroup, value in values.items():
            family.add_metric([cgroup], value)
        return family

    def test_last_value_wins(self) -> None:
        merged = merge_families(
            [
                self.snapshot({"a": 1.0}),
                self.snapshot({"a": 2.0, "b": 3.0}),
            ]
        )

        assert len(merged) == 1
        assert [(s.labels["cgroup"], s.value) for s in merged[0].samples] == [("a", 2.0), ("b", 3.0)]

    def test_keeps_first_appearance_order(self) -> None:
        other = GaugeMetricFamily("cgroupv2_other", "other", value=7.0)

        merged = merge_families([self.snapshot({"a": 1.0}), other, self.snapshot({"b": 2.0})])

        assert [f.name for f in merged] == ["cgroupv2_memory_current", "cgroupv2_other"]
        assert merged[0].type == "gauge"
        assert merged[0].documentation == "memory"
        assert len(merged[0].samples) == 2
