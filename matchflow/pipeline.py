"""Sequential scoring loop with pacing, cancellation and degraded fallbacks."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from matchflow.log import get_logger
from matchflow.models import JobPosting, MatchResult, ResumeContext
from matchflow.progress import CancellationToken, ProgressTracker
from matchflow.scorer import MatchScorer

log = get_logger(__name__)

# Pause between scorer calls for the LLM API rate limit
COURTESY_DELAY = 0.8


@dataclass
class PipelineResult:
    results: list[MatchResult] = field(default_factory=list)
    cancelled: bool = False


class ScoringPipeline:
    def __init__(
        self,
        scorer: MatchScorer,
        progress: ProgressTracker,
        *,
        delay: float = COURTESY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.scorer = scorer
        self.progress = progress
        self.delay = delay
        self._sleep = sleep

    def run(
        self,
        postings: list[JobPosting],
        resume: ResumeContext,
        expected_salary: int,
        token: CancellationToken,
    ) -> PipelineResult:
        """Score *postings* in order. One result per posting processed."""
        out = PipelineResult()
        total = len(postings)
        log.info("Starting to match %d jobs...", total)

        for i, posting in enumerate(postings):
            if token.is_cancelled():
                log.info("Job matching cancelled after %d/%d", i, total)
                out.cancelled = True
                break

            self.progress.update(current=i + 1, total=total, status=f"Analyzing job {i + 1} of {total}...")
            log.info("Matching job %d/%d: %s", i + 1, total, posting.title or "Unknown")
            try:
                result = self.scorer.score(posting, resume, expected_salary)
                log.info("  -> Score: %d", result.match_score)
            except Exception as exc:
                log.warning("Error matching job %d: %s", i + 1, exc)
                result = MatchResult.degraded(posting, str(exc) or exc.__class__.__name__)
            out.results.append(result)

            if i < total - 1 and self.delay > 0:
                self._sleep(self.delay)

        if token.is_cancelled():
            out.cancelled = True
        log.info("Finished matching. Results: %d jobs processed.", len(out.results))
        return out
