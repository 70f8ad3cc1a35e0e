"""Tests for the paced scoring loop."""

from __future__ import annotations

from matchflow.errors import ScoringError
from matchflow.models import ResultKind
from matchflow.pipeline import COURTESY_DELAY, ScoringPipeline
from matchflow.progress import ProgressTracker

from conftest import FakeScorer, make_posting


def _pipeline(scorer, sleeps=None):
    progress = ProgressTracker()
    progress.begin()
    sleeps = sleeps if sleeps is not None else []
    return ScoringPipeline(scorer, progress, sleep=sleeps.append), progress


def test_results_follow_posting_order(resume) -> None:
    postings = [make_posting(t) for t in ("C", "A", "B")]
    pipeline, progress = _pipeline(FakeScorer({"C": 1, "A": 2, "B": 3}))
    out = pipeline.run(postings, resume, 100000, progress.begin())
    assert [r.job_title for r in out.results] == ["C", "A", "B"]
    assert not out.cancelled


def test_courtesy_delay_between_items_only(resume) -> None:
    sleeps: list[float] = []
    pipeline, progress = _pipeline(FakeScorer(), sleeps)
    pipeline.run([make_posting(f"J{i}") for i in range(4)], resume, 1, progress.begin())
    assert sleeps == [COURTESY_DELAY] * 3


def test_single_item_never_sleeps(resume) -> None:
    sleeps: list[float] = []
    pipeline, progress = _pipeline(FakeScorer(), sleeps)
    pipeline.run([make_posting("only")], resume, 1, progress.begin())
    assert sleeps == []


def test_failures_degrade_without_aborting(resume, scoring_error) -> None:
    postings = [make_posting(f"J{i}") for i in range(3)]
    pipeline, progress = _pipeline(FakeScorer(default=scoring_error))
    out = pipeline.run(postings, resume, 1, progress.begin())
    assert len(out.results) == 3
    for posting, result in zip(postings, out.results):
        assert result.kind is ResultKind.DEGRADED
        assert result.match_score == 0
        assert result.job_title == posting.title
        assert result.benefits == "" and result.responsibilities == ""
        assert result.match_reason == "Error during analysis: timeout after 30s"


def test_progress_counts_up(resume) -> None:
    seen: list[tuple[int, int]] = []
    progress = ProgressTracker()

    def record(posting) -> None:
        snap = progress.snapshot()
        seen.append((snap.current, snap.total))

    pipeline = ScoringPipeline(FakeScorer(on_score=record), progress, delay=0)
    pipeline.run([make_posting(f"J{i}") for i in range(3)], resume, 1, progress.begin())
    assert seen == [(1, 3), (2, 3), (3, 3)]


def test_cancel_before_start_processes_nothing(resume) -> None:
    scorer = FakeScorer()
    pipeline, progress = _pipeline(scorer)
    token = progress.begin()
    progress.request_cancel()
    out = pipeline.run([make_posting("A"), make_posting("B")], resume, 1, token)
    assert out.cancelled
    assert out.results == []
    assert scorer.seen == []


def test_scores_are_clamped(resume) -> None:
    pipeline, progress = _pipeline(FakeScorer({"hi": 14.6, "lo": -3, "txt": "eight", "num": "7.5"}))
    postings = [make_posting(t) for t in ("hi", "lo", "txt", "num")]
    out = pipeline.run(postings, resume, 1, progress.begin())
    assert [r.match_score for r in out.results] == [10, 0, 0, 8]
    assert all(isinstance(r.match_score, int) for r in out.results)


def test_unexpected_exception_also_degrades(resume) -> None:
    pipeline, progress = _pipeline(FakeScorer({"A": KeyError("choices")}))
    out = pipeline.run([make_posting("A")], resume, 1, progress.begin())
    assert out.results[0].kind is ResultKind.DEGRADED


def test_scoring_error_message_is_kept(resume) -> None:
    pipeline, progress = _pipeline(FakeScorer({"A": ScoringError("rate limited")}))
    out = pipeline.run([make_posting("A")], resume, 1, progress.begin())
    assert "rate limited" in out.results[0].match_reason
