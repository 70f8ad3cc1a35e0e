"""Persist match results (replace-all) and run history (append-only) as CSV."""
from __future__ import annotations

import csv
import fcntl
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Iterator

from matchflow.config import DATA_DIR
from matchflow.errors import PersistenceError
from matchflow.log import get_logger
from matchflow.models import MatchResult, RunRecord

log = get_logger(__name__)

MATCH_HEADERS: list[str] = [
    "job_title", "company", "employment_type", "remote", "salary", "benefits",
    "responsibilities", "qualifications", "apply_links", "match_score",
    "match_reason", "kind",
]
HISTORY_HEADERS: list[str] = [
    "timestamp", "status", "jobs_found", "jobs_matched", "email_sent", "error_message",
]


@contextmanager
def _locked(path: Path, exclusive: bool = True) -> Iterator[None]:
    """Advisory lock on a sidecar ``.lock`` file (Unix fcntl)."""
    lock_path = path.with_suffix(path.suffix + ".lock")
    with open(lock_path, "a") as lf:
        fcntl.flock(lf.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
        try:
            yield
        finally:
            fcntl.flock(lf.fileno(), fcntl.LOCK_UN)


def _row_from_result(r: MatchResult) -> dict[str, str]:
    row = asdict(r)
    row["apply_links"] = json.dumps(r.apply_links)
    row["match_score"] = str(r.match_score)
    row["kind"] = r.kind.value
    return row


def _result_from_row(row: dict[str, str]) -> MatchResult:
    try:
        links = json.loads(row.get("apply_links") or "[]")
    except ValueError:
        links = [row["apply_links"]]
    return MatchResult(
        job_title=row.get("job_title", ""),
        company=row.get("company", ""),
        employment_type=row.get("employment_type", ""),
        remote=row.get("remote", ""),
        salary=row.get("salary", ""),
        benefits=row.get("benefits", ""),
        responsibilities=row.get("responsibilities", ""),
        qualifications=row.get("qualifications", ""),
        apply_links=links,
        match_score=row.get("match_score", "0"),
        match_reason=row.get("match_reason", ""),
        kind=row.get("kind") or "scored",
    )


class ResultStore:
    def __init__(self, data_dir: Path = DATA_DIR) -> None:
        self.data_dir = data_dir
        self.matches_csv = data_dir / "job_matches.csv"
        self.history_csv = data_dir / "run_history.csv"
        self._mutex = threading.Lock()

    def _ensure_dir(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot create data dir {self.data_dir}: {exc}") from exc

    def replace_all(self, results: list[MatchResult]) -> None:
        """Swap in a new result set: temp file then atomic rename."""
        self._ensure_dir()
        tmp: str | None = None
        try:
            with self._mutex, _locked(self.matches_csv):
                fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=".job_matches.", suffix=".tmp")
                with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                    w = csv.DictWriter(f, fieldnames=MATCH_HEADERS)
                    w.writeheader()
                    w.writerows(_row_from_result(r) for r in results)
                os.replace(tmp, self.matches_csv)
        except OSError as exc:
            if tmp:
                Path(tmp).unlink(missing_ok=True)
            raise PersistenceError(f"Failed to save results: {exc}") from exc
        log.info("Saved %d match result(s) → %s", len(results), self.matches_csv.name)

    def get_results(self, limit: int = 50) -> list[MatchResult]:
        if not self.matches_csv.exists():
            return []
        with self._mutex, _locked(self.matches_csv, exclusive=False):
            with open(self.matches_csv, "r", newline="", encoding="utf-8") as f:
                rows = list(csv.DictReader(f))
        results = [_result_from_row(r) for r in rows]
        results.sort(key=lambda r: -r.match_score)
        return results[:limit]

    def append_run_record(self, record: RunRecord) -> None:
        self._ensure_dir()
        row = {
            "timestamp": record.timestamp,
            "status": record.status,
            "jobs_found": str(record.jobs_found),
            "jobs_matched": str(record.jobs_matched),
            "email_sent": "true" if record.email_sent else "false",
            "error_message": record.error_message or "",
        }
        try:
            with self._mutex, _locked(self.history_csv):
                new_file = not self.history_csv.exists()
                with open(self.history_csv, "a", newline="", encoding="utf-8") as f:
                    w = csv.DictWriter(f, fieldnames=HISTORY_HEADERS)
                    if new_file:
                        w.writeheader()
                    w.writerow(row)
        except OSError as exc:
            raise PersistenceError(f"Failed to log run history: {exc}") from exc
        log.debug("Run record appended: %s found=%d matched=%d", record.status, record.jobs_found, record.jobs_matched)

    def get_history(self, limit: int = 10) -> list[RunRecord]:
        """Newest first."""
        if not self.history_csv.exists():
            return []
        with self._mutex, _locked(self.history_csv, exclusive=False):
            with open(self.history_csv, "r", newline="", encoding="utf-8") as f:
                rows = list(csv.DictReader(f))
        records = [
            RunRecord(
                status=r.get("status", ""),
                jobs_found=int(r.get("jobs_found") or 0),
                jobs_matched=int(r.get("jobs_matched") or 0),
                email_sent=r.get("email_sent") == "true",
                error_message=r.get("error_message", ""),
                timestamp=r.get("timestamp", ""),
            )
            for r in rows
        ]
        return list(reversed(records))[:limit]
