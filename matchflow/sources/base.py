from abc import ABC, abstractmethod

from matchflow.models import JobPosting


class JobSource(ABC):
    @abstractmethod
    def search(self, query: str, page_count: int) -> list[JobPosting]:
        """Postings in upstream order; raises UpstreamSearchError."""
