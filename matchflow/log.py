"""Logging for the ``matchflow`` logger tree.

Every logger handed out lives under ``matchflow`` (``app`` becomes
``matchflow.app``), so handlers and the level are set once on the namespace
and the root logger of the host process (streamlit, pytest) is left alone.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

NAMESPACE = "matchflow"

_FORMAT = "%(asctime)s  %(levelname)-8s  [%(threadName)s]  %(name)s: %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_NOISY = ("urllib3", "httpx", "openai")
_configured = False


def _log_dir() -> Path:
    override = os.environ.get("MATCHFLOW_LOG_DIR", "").strip()
    return Path(override) if override else Path(__file__).resolve().parent.parent / "logs"


def qualified_name(name: str) -> str:
    if name == NAMESPACE or name.startswith(NAMESPACE + "."):
        return name
    return f"{NAMESPACE}.{name.strip('_') or 'main'}"


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``matchflow`` namespace, configuring it once."""
    global _configured
    if not _configured:
        _configure(logging.getLogger(NAMESPACE))
        _configured = True
    return logging.getLogger(qualified_name(name))


def _configure(base: logging.Logger) -> None:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    base.setLevel(level)

    for noisy in _NOISY:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    # a host that already logs (pytest caplog, streamlit) receives our records by propagation
    if logging.getLogger().handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    base.addHandler(console)
    base.propagate = False

    log_dir = _log_dir()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / f"matchflow_{datetime.now():%Y-%m-%d}.log", encoding="utf-8")
    except OSError as exc:
        base.warning("File logging disabled: %s", exc)
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)
    base.addHandler(fh)
