"""JSearch API (OpenWeb Ninja) — aggregated job listings."""
from __future__ import annotations

from typing import Any

import requests

from matchflow.errors import UpstreamSearchError
from matchflow.log import get_logger
from matchflow.models import JobPosting
from matchflow.retry import retry
from matchflow.sources.base import JobSource

log = get_logger(__name__)

REQUEST_TIMEOUT = 30


def _number(value: Any) -> float | None:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def posting_from_hit(hit: dict[str, Any]) -> JobPosting:
    skills = hit.get("job_required_skills") or []
    if not isinstance(skills, list):
        skills = [str(skills)]
    return JobPosting(
        title=hit.get("job_title") or "",
        company=hit.get("employer_name") or "",
        employment_type=hit.get("job_employment_type") or "",
        remote=hit.get("job_is_remote"),
        min_salary=_number(hit.get("job_min_salary")),
        max_salary=_number(hit.get("job_max_salary")),
        salary_period=hit.get("job_salary_period") or "",
        skills=[str(s) for s in skills],
        apply_link=hit.get("job_apply_link") or "",
        description=hit.get("job_description") or "",
        raw=hit,
    )


class JSearchSource(JobSource):
    BASE = "https://api.openwebninja.com/jsearch"

    def __init__(self, env_getter) -> None:
        self.api_key: str = env_getter("JSEARCH_API_KEY")

    @retry(max_attempts=3, base_delay=2.0, retryable=(requests.ConnectionError, requests.Timeout))
    def _fetch(self, query: str, page_count: int) -> dict[str, Any]:
        r = requests.get(
            f"{self.BASE}/search",
            params={"query": query, "num_pages": page_count},
            headers={"x-api-key": self.api_key},
            timeout=REQUEST_TIMEOUT,
        )
        if r.status_code in (401, 403):
            raise UpstreamSearchError(f"JSearch rejected the API key (HTTP {r.status_code})")
        r.raise_for_status()
        return r.json()

    def search(self, query: str, page_count: int) -> list[JobPosting]:
        try:
            data = self._fetch(query, page_count)
        except UpstreamSearchError:
            raise
        except (requests.RequestException, ValueError) as exc:
            raise UpstreamSearchError(f"Job search failed: {exc}") from exc
        hits = data.get("data") or []
        postings = [posting_from_hit(h) for h in hits if isinstance(h, dict)]
        log.info("JSearch query=%r pages=%d returned %d jobs", query, page_count, len(postings))
        return postings
