"""Tests for the service wiring used by the UI and CLI."""

from __future__ import annotations

import time
from pathlib import Path

import pytest  # type: ignore

from matchflow.config import ConfigProvider
from matchflow.errors import UpstreamSearchError
from matchflow.scheduler import Scheduler
from matchflow.service import MatchService

from conftest import FakeScorer, FakeSource, make_posting


def _service(build_orchestrator, tmp_path: Path, **kwargs) -> MatchService:
    orch = build_orchestrator(**kwargs)
    orch.config = ConfigProvider(tmp_path / "settings.yaml")
    return MatchService(orch, Scheduler(orch.run_workflow, interval=3600, align=False))


def test_start_without_settings_keeps_scheduler_off(build_orchestrator, tmp_path) -> None:
    service = _service(build_orchestrator, tmp_path)
    service.start()
    assert not service.scheduler.armed


def test_saving_settings_toggles_scheduler(build_orchestrator, tmp_path) -> None:
    service = _service(build_orchestrator, tmp_path)
    try:
        service.update_settings({"email": "a@example.com", "auto_run": True})
        assert service.scheduler.armed
        service.update_settings({"auto_run": False})
        assert not service.scheduler.armed
    finally:
        service.shutdown()


def test_start_arms_from_stored_settings(build_orchestrator, tmp_path) -> None:
    ConfigProvider(tmp_path / "settings.yaml").save({"auto_run": True})
    service = _service(build_orchestrator, tmp_path)
    try:
        service.start()
        assert service.scheduler.armed
    finally:
        service.shutdown()


def test_background_run_records_outcome(build_orchestrator, tmp_path) -> None:
    ConfigProvider(tmp_path / "settings.yaml").save({"email": "a@example.com"})
    service = _service(build_orchestrator, tmp_path, source=FakeSource([make_posting("A")]),
                       scorer=FakeScorer({"A": 9}))

    assert service.run_in_background() is True
    deadline = time.monotonic() + 5
    while service.last_outcome is None and time.monotonic() < deadline:
        time.sleep(0.01)

    assert service.last_outcome is not None
    assert service.last_outcome.jobs_matched == 1
    assert not service.progress().running


def test_background_run_failure_is_surfaced(build_orchestrator, tmp_path) -> None:
    service = _service(build_orchestrator, tmp_path)
    assert service.run_in_background() is True
    deadline = time.monotonic() + 5
    while not service.last_error and time.monotonic() < deadline:
        time.sleep(0.01)
    assert service.last_error == "No settings found"


def test_failed_run_clears_previous_outcome(build_orchestrator, tmp_path) -> None:
    ConfigProvider(tmp_path / "settings.yaml").save({"email": "a@example.com"})
    source = FakeSource([make_posting("A")])
    service = _service(build_orchestrator, tmp_path, source=source, scorer=FakeScorer({"A": 9}))
    assert service.run_now().status == "success"

    source.error = UpstreamSearchError("HTTP 500")
    with pytest.raises(UpstreamSearchError):
        service.run_now()
    assert service.last_outcome is None
    assert service.last_error == "HTTP 500"

    source.error = None
    service.run_now()
    assert service.last_error == ""
    assert service.last_outcome.jobs_matched == 1


def test_background_start_clears_stale_error(build_orchestrator, tmp_path, gate) -> None:
    entered, release = gate

    def block(posting) -> None:
        entered.set()
        release.wait(5)

    ConfigProvider(tmp_path / "settings.yaml").save({"email": "a@example.com"})
    service = _service(build_orchestrator, tmp_path, source=FakeSource([make_posting("A")]),
                       scorer=FakeScorer(on_score=block))
    service.last_error = "No settings found"
    try:
        assert service.run_in_background() is True
        assert service.last_error == ""
        assert entered.wait(5)
        assert service.last_outcome is None
    finally:
        release.set()
    deadline = time.monotonic() + 5
    while service.last_outcome is None and time.monotonic() < deadline:
        time.sleep(0.01)
    assert service.last_outcome is not None
