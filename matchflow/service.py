"""Process-wide wiring of providers, orchestrator and scheduler."""
from __future__ import annotations

import threading
from typing import Any

from matchflow.config import ConfigProvider, ensure_dirs, get_env
from matchflow.errors import ConfigMissing, MatchflowError, WorkflowAlreadyRunning
from matchflow.log import get_logger
from matchflow.models import ProgressState, RunConfig, RunOutcome
from matchflow.notifier import EmailNotifier
from matchflow.orchestrator import Orchestrator
from matchflow.resume import ResumeProvider
from matchflow.scheduler import Scheduler
from matchflow.scorer import LLMMatchScorer
from matchflow.sources import get_source
from matchflow.store import ResultStore

log = get_logger(__name__)


class MatchService:
    def __init__(self, orchestrator: Orchestrator, scheduler: Scheduler | None = None) -> None:
        self.orchestrator = orchestrator
        self.scheduler = scheduler or Scheduler(orchestrator.run_workflow)
        self.last_outcome: RunOutcome | None = None
        self.last_error: str = ""

    @property
    def config(self) -> ConfigProvider:
        return self.orchestrator.config

    @property
    def store(self) -> ResultStore:
        return self.orchestrator.store

    @property
    def resumes(self) -> ResumeProvider:
        return self.orchestrator.resumes

    def start(self) -> None:
        """Arm the scheduler if the stored settings ask for auto-run."""
        try:
            self.scheduler.sync(self.config.current())
        except ConfigMissing:
            log.info("No settings yet — scheduler stays off")

    def update_settings(self, values: dict[str, Any]) -> RunConfig:
        cfg = self.config.save(values)
        self.scheduler.sync(cfg)
        return cfg

    def run_now(self) -> RunOutcome:
        """Run synchronously; the previous outcome and error are cleared first."""
        self.last_outcome, self.last_error = None, ""
        try:
            outcome = self.orchestrator.run_workflow()
        except WorkflowAlreadyRunning:
            raise
        except Exception as exc:
            self.last_error = str(exc) or exc.__class__.__name__
            raise
        self.last_outcome = outcome
        return outcome

    def run_in_background(self) -> bool:
        """Start a run on a worker thread; False if one is already active."""
        if self.orchestrator.is_running():
            return False
        self.last_outcome, self.last_error = None, ""

        def _target() -> None:
            try:
                self.run_now()
            except WorkflowAlreadyRunning:
                log.warning("Manual run rejected — a workflow is already running")
            except MatchflowError as exc:
                log.info("Background run failed: %s", exc)
            except Exception:
                log.exception("Unexpected workflow failure")

        threading.Thread(target=_target, name="matchflow-run", daemon=True).start()
        return True

    def cancel(self) -> bool:
        return self.orchestrator.cancel()

    def progress(self) -> ProgressState:
        return self.orchestrator.get_progress()

    def shutdown(self) -> None:
        self.scheduler.stop()


def build_service() -> MatchService:
    ensure_dirs()
    orchestrator = Orchestrator(
        config=ConfigProvider(),
        resumes=ResumeProvider(),
        source=get_source(get_env),
        scorer=LLMMatchScorer(),
        store=ResultStore(),
        notifier=EmailNotifier(),
    )
    return MatchService(orchestrator)
