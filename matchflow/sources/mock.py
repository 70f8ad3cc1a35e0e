"""Mock job source for offline runs when no JSearch key is configured."""
from __future__ import annotations

from matchflow.log import get_logger
from matchflow.models import JobPosting
from matchflow.sources.base import JobSource

log = get_logger(__name__)


class MockSource(JobSource):
    def search(self, query: str, page_count: int) -> list[JobPosting]:
        log.info("MockSource generating sample jobs for %r", query)
        return [
            JobPosting(
                title=query or "Software Engineer",
                company="TechCorp",
                employment_type="FULLTIME",
                remote=True,
                min_salary=110000,
                max_salary=140000,
                salary_period="YEAR",
                skills=["Python", "PostgreSQL", "Docker"],
                apply_link="https://example.com/job/1",
                description="Build backend services in Python. 3+ years experience.",
            ),
            JobPosting(
                title="Backend Developer",
                company="CloudScale SaaS",
                employment_type="CONTRACTOR",
                remote=False,
                skills=["Go", "Kubernetes"],
                apply_link="https://example.com/job/2",
                description="Distributed systems, on-call rotation.",
            ),
            JobPosting(
                title="Junior Web Developer",
                company="Agency Inc",
                employment_type="PARTTIME",
                remote=True,
                min_salary=25,
                max_salary=35,
                salary_period="HOUR",
                skills=["JavaScript", "React"],
                apply_link="https://example.com/job/3",
                description="Frontend work for client sites.",
            ),
        ]
