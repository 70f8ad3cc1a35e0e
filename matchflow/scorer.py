"""Score one posting against the candidate's resume with an LLM."""
from __future__ import annotations

import json
from typing import Any, Protocol

from matchflow import llm
from matchflow.errors import ScoringError
from matchflow.log import get_logger
from matchflow.models import JobPosting, MatchResult, ResultKind, ResumeContext

log = get_logger(__name__)

SCORE_TIMEOUT = 30.0

_SCORE_PROMPT = """\
You are an expert job matching AI. Analyze how well this candidate matches the job listing.

## CANDIDATE RESUME:
{resume}

## CANDIDATE MINIMUM SALARY REQUIREMENT: ${salary}

## JOB LISTING:
{posting}

---

Evaluate the match on these factors:

1. SALARY: take the salary from job_min_salary / job_max_salary or the text.
   Hourly rates multiply by 2080 for annual. +2 if >= the requirement,
   +1 if within 10%, 0 if below.
2. SKILLS: +1 per major matching skill (max 5), -1 per critical missing skill.
3. EXPERIENCE: +2 if meets or exceeds, +1 if close, 0 if significantly under.
4. EDUCATION: +1 if it matches or exceeds the requirement.

Total the points; cap at 10 and floor at 0.

Return ONLY a valid JSON object with these exact keys:

{{
  "job_title": "extracted job title",
  "company": "company name",
  "employment_type": "Full-time/Part-time/Contract",
  "remote": "Yes or No",
  "salary": "salary as string (e.g. '$80,000 - $120,000')",
  "benefits": "key benefits if mentioned",
  "responsibilities": "key responsibilities, semicolon separated",
  "qualifications": "key qualifications, semicolon separated",
  "apply_links": ["up to 4 application URLs"],
  "match_score": 0,
  "match_reason": "[SALARY: ...] [SKILLS: matched X, missing Y] [EXPERIENCE: ...] [OVERALL: ...]"
}}

match_score MUST be an integer 0-10 and match_reason MUST cover both salary and skills.
"""


class MatchScorer(Protocol):
    def score(
        self, posting: JobPosting, resume: ResumeContext, expected_salary: int
    ) -> MatchResult:
        ...


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "; ".join(str(v) for v in value if v)
    return str(value).strip()


def _links(value: Any, posting: JobPosting) -> list[str]:
    if isinstance(value, str):
        value = [value]
    links = [str(v).strip() for v in (value or []) if str(v).strip()]
    if not links and posting.apply_link:
        links = [posting.apply_link]
    return links[:4]


def normalize_result(data: dict[str, Any], posting: JobPosting) -> MatchResult:
    """Build a Scored result from model JSON, backfilling from the posting."""
    remote = data.get("remote")
    if isinstance(remote, bool):
        remote = "Yes" if remote else "No"
    return MatchResult(
        job_title=_text(data.get("job_title")) or posting.title,
        company=_text(data.get("company")) or posting.company,
        employment_type=_text(data.get("employment_type")) or posting.employment_type,
        remote=_text(remote) or ("Yes" if posting.remote else "No"),
        salary=_text(data.get("salary")) or posting.salary_text,
        benefits=_text(data.get("benefits")),
        responsibilities=_text(data.get("responsibilities")),
        qualifications=_text(data.get("qualifications")),
        apply_links=_links(data.get("apply_links") or data.get("apply_link"), posting),
        match_score=data.get("match_score"),
        match_reason=_text(data.get("match_reason")),
        kind=ResultKind.SCORED,
    )


class LLMMatchScorer:
    """Mistral chat-completions scorer. Every failure surfaces as ScoringError."""

    def __init__(self, timeout: float = SCORE_TIMEOUT, client=None, model: str | None = None) -> None:
        self.timeout = timeout
        self._client = client
        self.model = model or llm.model_name()

    @property
    def client(self):
        if self._client is None:
            if not llm.api_key():
                raise ScoringError("MISTRAL_API_KEY is not set")
            # no client-side retries: the timeout bounds each posting
            self._client = llm.make_client(timeout=self.timeout, max_retries=0)
        return self._client

    def build_prompt(self, posting: JobPosting, resume: ResumeContext, expected_salary: int) -> str:
        return _SCORE_PROMPT.format(
            resume=resume.text,
            salary=expected_salary,
            posting=json.dumps(posting.raw or posting.__dict__, indent=2, default=str),
        )

    def score(
        self, posting: JobPosting, resume: ResumeContext, expected_salary: int
    ) -> MatchResult:
        prompt = self.build_prompt(posting, resume, expected_salary)
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": "Analyze this job match and return the JSON."},
                ],
                response_format={"type": "json_object"},
                temperature=0.1,
            )
            raw = (resp.choices[0].message.content or "").strip()
            data = llm.extract_json(raw)
        except ScoringError:
            raise
        except Exception as exc:
            raise ScoringError(str(exc)[:300] or exc.__class__.__name__) from exc
        result = normalize_result(data, posting)
        log.debug("Scored %r @ %r → %d", result.job_title, result.company, result.match_score)
        return result
