"""Run progress shared with pollers, plus the cooperative cancel flag."""
from __future__ import annotations

import threading
from dataclasses import replace

from matchflow.models import ProgressState


class CancellationToken:
    """Polled by the pipeline between postings; in-flight calls are not interrupted."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


class ProgressTracker:
    """Single process-wide progress record.

    Only the active run writes (``begin``/``update``/``finish``). Pollers call
    ``snapshot`` which copies the state under the lock. Cancels are accepted
    from ``begin`` until ``close_cancel_window``; after that the run commits.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = ProgressState()
        self._token = CancellationToken()
        self._cancellable = False

    def snapshot(self) -> ProgressState:
        with self._lock:
            return self._state

    @property
    def running(self) -> bool:
        return self.snapshot().running

    def begin(self, status: str = "Starting...") -> CancellationToken:
        with self._lock:
            self._token = CancellationToken()
            self._cancellable = True
            self._state = ProgressState(running=True, current=0, total=0, status=status, cancelled=False)
            return self._token

    def update(
        self,
        *,
        status: str | None = None,
        current: int | None = None,
        total: int | None = None,
    ) -> None:
        with self._lock:
            if not self._state.running:
                return
            changes: dict = {}
            if status is not None and not self._state.cancelled:
                changes["status"] = status
            if current is not None:
                changes["current"] = max(current, self._state.current)
            if total is not None:
                changes["total"] = total
            self._state = replace(self._state, **changes)

    def finish(self, status: str) -> None:
        with self._lock:
            self._cancellable = False
            self._state = replace(self._state, running=False, status=status)

    def close_cancel_window(self) -> bool:
        """Stop accepting cancels; True if one already landed."""
        with self._lock:
            self._cancellable = False
            return self._state.cancelled

    def request_cancel(self) -> bool:
        """Flag the active run for cancellation; refused when idle or committing."""
        with self._lock:
            if not (self._state.running and self._cancellable):
                return False
            self._state = replace(self._state, cancelled=True, status="Cancelling...")
            self._token.cancel()
            return True
