from .base import JobSource
from .jsearch import JSearchSource
from .mock import MockSource

from matchflow.log import get_logger

log = get_logger(__name__)

__all__ = ["JobSource", "JSearchSource", "MockSource", "get_source"]


def get_source(env_getter) -> JobSource:
    if env_getter("JSEARCH_API_KEY"):
        log.info("Registered source: JSearch")
        return JSearchSource(env_getter)
    log.info("No JSEARCH_API_KEY found — using MockSource")
    return MockSource()
