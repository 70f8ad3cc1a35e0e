"""Error taxonomy for a workflow run."""
from __future__ import annotations


class MatchflowError(Exception):
    """Base class; ``str(exc)`` is the message surfaced to the caller."""


class ConfigMissing(MatchflowError):
    pass


class ConfigError(MatchflowError, ValueError):
    """Settings exist but hold values outside their allowed range."""


class ResumeMissing(MatchflowError):
    pass


class UpstreamSearchError(MatchflowError):
    pass


class ScoringError(MatchflowError):
    """Raised by a scorer for one posting. The pipeline absorbs it."""


class PersistenceError(MatchflowError):
    pass


class NotifyError(MatchflowError):
    """Raised by a notifier. Never fatal to a run."""


class WorkflowAlreadyRunning(MatchflowError):
    def __init__(self, message: str = "Workflow already running") -> None:
        super().__init__(message)
