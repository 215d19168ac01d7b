from __future__ import annotations

import json
import logging

import pytest

from procshell.config import SessionConfig
from procshell.execution.coordinator import ExecutionCoordinator
from procshell.execution.workdir import WorkingDirectoryState
from procshell.util.observability import EventLogger, MetricsCollector


def test_metrics_collector_snapshot() -> None:
    metrics = MetricsCollector()
    metrics.increment("calls", 2)
    metrics.record_duration("latency", 1.5)
    metrics.record_duration("latency", 0.5)

    snapshot = metrics.snapshot()

    assert snapshot["counters"]["calls"] == 2
    assert snapshot["durations"]["latency"]["count"] == 2.0
    assert snapshot["durations"]["latency"]["avg_s"] == 1.0


def test_event_logger_emits_json(caplog: pytest.LogCaptureFixture) -> None:
    logger = EventLogger("test.events", context={"session": "s1"})
    caplog.set_level(logging.INFO, logger="test.events")

    logger.log("sample.event", {"value": 42})

    assert caplog.records
    payload = json.loads(caplog.records[-1].message)
    assert payload["event_type"] == "sample.event"
    assert payload["payload"]["value"] == 42
    assert payload["context"] == {"session": "s1"}


def test_event_logger_skips_disabled_levels(caplog: pytest.LogCaptureFixture) -> None:
    logger = EventLogger("test.quiet")
    caplog.set_level(logging.WARNING, logger="test.quiet")

    logger.log("sample.event", {"value": 1}, level="DEBUG")

    assert not [record for record in caplog.records if record.name == "test.quiet"]


def test_execution_emits_finished_event(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="procshell.events")
    config = SessionConfig(echo_stdout=False, echo_stderr=False)

    ExecutionCoordinator().execute("/bin/sh", ["-c", "exit 3"], config, WorkingDirectoryState())

    events = [
        json.loads(record.message) for record in caplog.records if record.name == "procshell.events"
    ]
    finished = [event for event in events if event["event_type"] == "execution.finished"]
    assert finished
    assert finished[-1]["payload"]["exit_code"] == 3
    assert finished[-1]["payload"]["error"] == "NonZeroExit"
