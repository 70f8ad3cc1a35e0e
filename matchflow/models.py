"""Data models for configs, postings, match results and run bookkeeping."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

MIN_SCORE = 0
MAX_SCORE = 10

_NUMBER_RE = re.compile(r"[-+]?\d+(?:\.\d+)?")


def coerce_score(value: Any) -> int:
    """Force any scorer output into an integer in [0, 10].

    Numbers are rounded half-up and clamped; numeric strings ("8", "7.5/10")
    use their first number; anything unparsable is 0.
    """
    if isinstance(value, bool) or value is None:
        return MIN_SCORE
    if isinstance(value, str):
        m = _NUMBER_RE.search(value)
        if not m:
            return MIN_SCORE
        value = m.group(0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return MIN_SCORE
    if math.isnan(number):
        return MIN_SCORE
    number = min(max(number, MIN_SCORE), MAX_SCORE)
    return int(math.floor(number + 0.5))


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


@dataclass(frozen=True)
class RunConfig:
    email: str
    job_query: str
    expected_salary: int
    match_threshold: int
    job_limit: int
    auto_run: bool = False


@dataclass
class JobPosting:
    title: str
    company: str
    employment_type: str = ""
    remote: bool | None = None
    min_salary: float | None = None
    max_salary: float | None = None
    salary_period: str = ""
    skills: list[str] = field(default_factory=list)
    apply_link: str = ""
    description: str = ""
    raw: dict = field(default_factory=dict)

    @property
    def salary_text(self) -> str:
        if self.min_salary and self.max_salary:
            text = f"${self.min_salary:,.0f} - ${self.max_salary:,.0f}"
        elif self.min_salary or self.max_salary:
            text = f"${(self.min_salary or self.max_salary):,.0f}"
        else:
            return "Not Specified"
        if self.salary_period:
            text += f" / {self.salary_period.lower()}"
        return text


@dataclass
class ResumeContext:
    filename: str
    raw_text: str
    parsed_text: str = ""

    @property
    def text(self) -> str:
        return self.parsed_text or self.raw_text


class ResultKind(str, Enum):
    SCORED = "scored"
    DEGRADED = "degraded"


@dataclass
class MatchResult:
    job_title: str
    company: str
    employment_type: str = ""
    remote: str = ""
    salary: str = ""
    benefits: str = ""
    responsibilities: str = ""
    qualifications: str = ""
    apply_links: list[str] = field(default_factory=list)
    match_score: int = 0
    match_reason: str = ""
    kind: ResultKind = ResultKind.SCORED

    def __post_init__(self) -> None:
        self.match_score = coerce_score(self.match_score)
        self.kind = ResultKind(self.kind)

    @classmethod
    def degraded(cls, posting: JobPosting, reason: str) -> "MatchResult":
        """Fallback built only from posting fields when scoring failed."""
        return cls(
            job_title=posting.title or "Unknown Title",
            company=posting.company or "Unknown Company",
            employment_type=posting.employment_type or "Not Specified",
            remote="Yes" if posting.remote else "No",
            salary=posting.salary_text,
            qualifications="; ".join(posting.skills),
            apply_links=[posting.apply_link] if posting.apply_link else [],
            match_score=0,
            match_reason=f"Error during analysis: {reason}",
            kind=ResultKind.DEGRADED,
        )


@dataclass(frozen=True)
class ProgressState:
    running: bool = False
    current: int = 0
    total: int = 0
    status: str = ""
    cancelled: bool = False


@dataclass
class RunRecord:
    status: str
    jobs_found: int
    jobs_matched: int
    email_sent: bool
    error_message: str = ""
    timestamp: str = field(default_factory=utc_now)


@dataclass
class RunOutcome:
    status: str
    jobs_found: int = 0
    jobs_matched: int = 0
    email_sent: bool = False
    message: str = ""

    @property
    def cancelled(self) -> bool:
        return self.status == "cancelled"
