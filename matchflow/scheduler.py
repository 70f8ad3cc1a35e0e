"""Hourly re-trigger of the workflow while auto_run is enabled."""
from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable

from matchflow.errors import WorkflowAlreadyRunning
from matchflow.log import get_logger
from matchflow.models import RunConfig

log = get_logger(__name__)

HOURLY = 3600.0


def seconds_until_next_hour(now: datetime | None = None) -> float:
    now = now or datetime.now()
    target = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return max((target - now).total_seconds(), 1.0)


class Scheduler:
    """Background thread that fires ``run`` every ``interval`` seconds.

    With ``align`` the wait is to the top of the next hour, like a
    ``0 * * * *`` cron entry. Overlap with another run is left to the
    orchestrator's run lock.
    """

    def __init__(
        self,
        run: Callable[[], object],
        *,
        interval: float = HOURLY,
        align: bool = True,
    ) -> None:
        self._run = run
        self.interval = interval
        self.align = align
        self._lock = threading.Lock()
        self._stop: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._stop is not None

    def _next_wait(self) -> float:
        return seconds_until_next_hour() if self.align else self.interval

    def start(self) -> None:
        with self._lock:
            if self._stop is not None:
                return
            stop = threading.Event()
            thread = threading.Thread(target=self._loop, args=(stop,), name="matchflow-scheduler", daemon=True)
            self._stop, self._thread = stop, thread
            thread.start()
        log.info("Scheduler started (%s)", "hourly" if self.align else f"every {self.interval:g}s")

    def stop(self) -> None:
        with self._lock:
            if self._stop is None:
                return
            self._stop.set()
            self._stop, self._thread = None, None
        log.info("Scheduler stopped")

    enable = start
    disable = stop

    def sync(self, config: RunConfig | None) -> None:
        """Arm or disarm according to ``config.auto_run``."""
        if config is not None and config.auto_run:
            self.start()
        else:
            self.stop()

    def join(self, timeout: float | None = None) -> None:
        with self._lock:
            thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _loop(self, stop: threading.Event) -> None:
        while not stop.wait(self._next_wait()):
            self._fire()

    def _fire(self) -> None:
        log.info("Scheduled run starting...")
        try:
            outcome = self._run()
            log.info("Scheduled run finished: %s", getattr(outcome, "message", outcome))
        except WorkflowAlreadyRunning:
            log.warning("Scheduled run skipped — a workflow is already running")
        except Exception as exc:
            log.error("Scheduled run failed: %s", exc)
