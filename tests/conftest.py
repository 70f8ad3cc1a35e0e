"""Shared fakes for the workflow collaborators."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

import pytest  # type: ignore

from matchflow.errors import ConfigMissing, NotifyError, ResumeMissing, ScoringError
from matchflow.models import JobPosting, MatchResult, ResumeContext, RunConfig
from matchflow.orchestrator import Orchestrator
from matchflow.pipeline import ScoringPipeline
from matchflow.progress import ProgressTracker
from matchflow.store import ResultStore


def make_posting(title: str, company: str = "Acme") -> JobPosting:
    return JobPosting(
        title=title,
        company=company,
        employment_type="FULLTIME",
        remote=True,
        min_salary=90000,
        max_salary=120000,
        skills=["Python", "SQL"],
        apply_link=f"https://jobs.example.com/{title.lower()}",
    )


class FakeConfig:
    def __init__(self, config: RunConfig | None) -> None:
        self.config = config

    def exists(self) -> bool:
        return self.config is not None

    def current(self) -> RunConfig:
        if self.config is None:
            raise ConfigMissing("No settings found")
        return self.config


class FakeResumes:
    def __init__(self, resume: ResumeContext | None) -> None:
        self.resume = resume

    def get_latest(self) -> ResumeContext:
        if self.resume is None:
            raise ResumeMissing("No resume uploaded")
        return self.resume


class FakeSource:
    def __init__(self, postings: list[JobPosting] | None = None, error: Exception | None = None) -> None:
        self.postings = postings or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    def search(self, query: str, page_count: int) -> list[JobPosting]:
        self.calls.append((query, page_count))
        if self.error:
            raise self.error
        return list(self.postings)


class FakeScorer:
    """Scores by title lookup; a value that is an Exception is raised instead."""

    def __init__(self, scores: dict[str, object] | None = None, default: object = 5,
                 on_score: Callable[[JobPosting], None] | None = None) -> None:
        self.scores = scores or {}
        self.default = default
        self.on_score = on_score
        self.seen: list[str] = []

    def score(self, posting: JobPosting, resume: ResumeContext, expected_salary: int) -> MatchResult:
        self.seen.append(posting.title)
        if self.on_score:
            self.on_score(posting)
        value = self.scores.get(posting.title, self.default)
        if isinstance(value, Exception):
            raise value
        return MatchResult(job_title=posting.title, company=posting.company, match_score=value,
                           match_reason="fake")


class FakeNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, list[MatchResult], int]] = []

    def send(self, recipient: str, matches: list[MatchResult], threshold: int) -> None:
        if self.fail:
            raise NotifyError("SMTP down")
        self.sent.append((recipient, matches, threshold))


@pytest.fixture
def run_config() -> RunConfig:
    return RunConfig(
        email="jane@example.com",
        job_query="Python Developer",
        expected_salary=100000,
        match_threshold=7,
        job_limit=30,
        auto_run=False,
    )


@pytest.fixture
def resume() -> ResumeContext:
    return ResumeContext(filename="cv.txt", raw_text="Jane Doe\nPython, SQL, 6 years")


@pytest.fixture
def store(tmp_path: Path) -> ResultStore:
    return ResultStore(tmp_path / "data")


@pytest.fixture
def build_orchestrator(run_config, resume, store):
    """Factory wiring fakes into a real Orchestrator with no courtesy delay."""

    def _build(*, config=run_config, resume_ctx=resume, source=None, scorer=None, notifier=None):
        progress = ProgressTracker()
        scorer = scorer or FakeScorer()
        return Orchestrator(
            config=FakeConfig(config),
            resumes=FakeResumes(resume_ctx),
            source=source or FakeSource(),
            scorer=scorer,
            store=store,
            notifier=notifier or FakeNotifier(),
            progress=progress,
            pipeline=ScoringPipeline(scorer, progress, delay=0),
        )

    return _build


@pytest.fixture
def scoring_error() -> ScoringError:
    return ScoringError("timeout after 30s")


@pytest.fixture
def gate():
    """A pair of events for pausing a run mid-flight from the test thread."""
    return threading.Event(), threading.Event()
