"""Tests for the shared progress tracker."""

from __future__ import annotations

from matchflow.progress import ProgressTracker


def test_begin_resets_state() -> None:
    tracker = ProgressTracker()
    tracker.begin()
    tracker.update(current=3, total=5, status="Analyzing job 3 of 5...")
    tracker.finish("Complete")

    token = tracker.begin()
    snap = tracker.snapshot()
    assert snap.running and snap.current == 0 and snap.total == 0
    assert snap.status == "Starting..."
    assert not snap.cancelled and not token.is_cancelled()


def test_counter_never_decreases() -> None:
    tracker = ProgressTracker()
    tracker.begin()
    tracker.update(current=4)
    tracker.update(current=2)
    assert tracker.snapshot().current == 4


def test_cancel_only_while_running() -> None:
    tracker = ProgressTracker()
    assert tracker.request_cancel() is False

    token = tracker.begin()
    assert tracker.request_cancel() is True
    snap = tracker.snapshot()
    assert snap.cancelled and snap.status == "Cancelling..."
    assert token.is_cancelled()

    # status stays on "Cancelling..." until the run finishes
    tracker.update(status="Analyzing job 2 of 3...")
    assert tracker.snapshot().status == "Cancelling..."
    tracker.finish("Cancelled")
    assert tracker.snapshot().status == "Cancelled"


def test_new_run_gets_fresh_token() -> None:
    tracker = ProgressTracker()
    old = tracker.begin()
    tracker.request_cancel()
    tracker.finish("Cancelled")
    new = tracker.begin()
    assert old.is_cancelled() and not new.is_cancelled()


def test_snapshot_is_immutable_copy() -> None:
    tracker = ProgressTracker()
    tracker.begin()
    before = tracker.snapshot()
    tracker.update(current=1, total=2)
    assert before.current == 0
    assert tracker.snapshot().current == 1


def test_updates_ignored_when_idle() -> None:
    tracker = ProgressTracker()
    tracker.update(current=5, status="stale")
    snap = tracker.snapshot()
    assert snap.current == 0 and snap.status == ""


def test_cancel_refused_once_window_closed() -> None:
    tracker = ProgressTracker()
    token = tracker.begin()
    assert tracker.close_cancel_window() is False

    assert tracker.request_cancel() is False
    assert not token.is_cancelled()
    tracker.update(status="Saving results...")
    assert tracker.snapshot().status == "Saving results..."


def test_close_window_reports_earlier_cancel() -> None:
    tracker = ProgressTracker()
    tracker.begin()
    tracker.request_cancel()
    assert tracker.close_cancel_window() is True
    tracker.finish("Cancelled")
    # next run reopens the window
    tracker.begin()
    assert tracker.request_cancel() is True
