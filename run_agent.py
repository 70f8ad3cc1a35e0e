#!/usr/bin/env python3
"""Entry point: run the matching workflow once or keep the hourly scheduler alive.

Usage:
  python run_agent.py --once       run one workflow now and exit
  python run_agent.py --schedule   fire hourly regardless of the auto_run setting
  python run_agent.py              fire hourly while settings have auto_run: true
"""
from __future__ import annotations

import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from matchflow.errors import MatchflowError
from matchflow.log import get_logger
from matchflow.service import build_service

log = get_logger(__name__)


def run_once() -> int:
    service = build_service()
    try:
        outcome = service.run_now()
    except MatchflowError as exc:
        log.error("Run failed: %s", exc)
        return 1
    log.info("Run %s.", outcome.status)
    log.info("  Jobs found: %d", outcome.jobs_found)
    log.info("  Jobs matched: %d", outcome.jobs_matched)
    log.info("  Email sent: %s", outcome.email_sent)
    if outcome.message:
        log.info("  %s", outcome.message)
    return 0


def serve(force: bool) -> int:
    service = build_service()
    if force:
        service.scheduler.start()
    else:
        service.start()
    if not service.scheduler.armed:
        log.warning("auto_run is off in config/settings.yaml — nothing to schedule")
        return 1
    try:
        while service.scheduler.armed:
            time.sleep(60)
    except KeyboardInterrupt:
        log.info("Interrupted — stopping scheduler")
    finally:
        service.shutdown()
    return 0


if __name__ == "__main__":
    if "--once" in sys.argv:
        sys.exit(run_once())
    sys.exit(serve(force="--schedule" in sys.argv))
