"""Workflow orchestrator.

One run: load settings → load resume → search → score (paced, cancellable)
→ threshold filter → replace stored results → email good matches → log run.
At most one run is active per process; overlapping triggers are rejected.
"""
from __future__ import annotations

import threading

from matchflow.config import ConfigProvider
from matchflow.errors import NotifyError, WorkflowAlreadyRunning
from matchflow.log import get_logger
from matchflow.models import MatchResult, ProgressState, RunOutcome, RunRecord
from matchflow.notifier import Notifier
from matchflow.pipeline import ScoringPipeline
from matchflow.progress import ProgressTracker
from matchflow.resume import ResumeProvider
from matchflow.scorer import MatchScorer
from matchflow.sources import JobSource
from matchflow.store import ResultStore

log = get_logger(__name__)

# Pages requested from the job source per run; not user-tunable
SEARCH_PAGES = 10


def filter_good_matches(results: list[MatchResult], threshold: int) -> list[MatchResult]:
    return [r for r in results if r.match_score >= threshold]


class Orchestrator:
    def __init__(
        self,
        *,
        config: ConfigProvider,
        resumes: ResumeProvider,
        source: JobSource,
        scorer: MatchScorer,
        store: ResultStore,
        notifier: Notifier,
        progress: ProgressTracker | None = None,
        pipeline: ScoringPipeline | None = None,
    ) -> None:
        self.config = config
        self.resumes = resumes
        self.source = source
        self.store = store
        self.notifier = notifier
        self.progress = progress or ProgressTracker()
        self.pipeline = pipeline or ScoringPipeline(scorer, self.progress)
        self._run_lock = threading.Lock()

    def get_progress(self) -> ProgressState:
        return self.progress.snapshot()

    def cancel(self) -> bool:
        accepted = self.progress.request_cancel()
        if accepted:
            log.info("Cancel requested")
        return accepted

    def is_running(self) -> bool:
        return self._run_lock.locked()

    def run_workflow(self) -> RunOutcome:
        """Execute one run. Raises WorkflowAlreadyRunning or the run's failure."""
        if not self._run_lock.acquire(blocking=False):
            raise WorkflowAlreadyRunning()
        try:
            return self._run()
        finally:
            self._run_lock.release()

    def _run(self) -> RunOutcome:
        log.info("Starting workflow...")
        token = self.progress.begin("Starting...")

        try:
            self.progress.update(status="Loading settings...")
            cfg = self.config.current()

            self.progress.update(status="Loading resume...")
            resume = self.resumes.get_latest()

            self.progress.update(status="Searching for jobs...")
            log.info("Searching for: %s", cfg.job_query)
            postings = self.source.search(cfg.job_query, SEARCH_PAGES)
            log.info("Found %d jobs", len(postings))

            effective_limit = min(len(postings), cfg.job_limit)
            self.progress.update(total=effective_limit)
            log.info("Matching up to %d jobs...", effective_limit)

            scored = self.pipeline.run(postings[:effective_limit], resume, cfg.expected_salary, token)
            # cancels are refused from here on; saving and email always complete
            if self.progress.close_cancel_window() or scored.cancelled:
                self.progress.finish("Cancelled")
                log.info("Workflow cancelled after %d job(s); nothing saved", len(scored.results))
                return RunOutcome(status="cancelled", message="Workflow cancelled")

            results = scored.results
            self.progress.update(status="Filtering results...")
            good_matches = filter_good_matches(results, cfg.match_threshold)
            log.info("%d jobs meet threshold", len(good_matches))

            self.progress.update(status="Saving results...")
            self.store.replace_all(results)

            email_sent = False
            if good_matches and cfg.email:
                self.progress.update(status="Sending email...")
                log.info("Sending email to %s with %d jobs meeting threshold...", cfg.email, len(good_matches))
                try:
                    self.notifier.send(cfg.email, good_matches, cfg.match_threshold)
                    email_sent = True
                except NotifyError as exc:
                    log.error("Email failed: %s", exc)
            elif good_matches:
                log.warning("No recipient email in settings — skipping email")
            else:
                log.info("No jobs meet threshold of %d - email not sent", cfg.match_threshold)

            self.store.append_run_record(
                RunRecord(
                    status="success",
                    jobs_found=len(postings),
                    jobs_matched=len(good_matches),
                    email_sent=email_sent,
                )
            )
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            log.error("Workflow error: %s", message)
            self.progress.finish(f"Error: {message}")
            try:
                self.store.append_run_record(
                    RunRecord(status="error", jobs_found=0, jobs_matched=0, email_sent=False, error_message=message)
                )
            except Exception as record_exc:
                log.error("Could not record failed run: %s", record_exc)
            raise

        self.progress.finish("Complete")
        t = cfg.match_threshold
        if email_sent:
            message = f"Email sent! {len(good_matches)}/{len(results)} jobs matched (score ≥ {t})"
        else:
            message = f"Done. {len(good_matches)}/{len(results)} jobs match threshold of {t}. No email sent."
        log.info(
            "Run complete — found=%d, scored=%d, matched=%d, email=%s",
            len(postings), len(results), len(good_matches), email_sent,
        )
        return RunOutcome(
            status="success",
            jobs_found=len(postings),
            jobs_matched=len(good_matches),
            email_sent=email_sent,
            message=message,
        )
