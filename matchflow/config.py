"""Load run settings and env configuration."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from matchflow.errors import ConfigError, ConfigMissing
from matchflow.log import get_logger
from matchflow.models import RunConfig

log = get_logger(__name__)

load_dotenv()

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = PROJECT_ROOT / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = PROJECT_ROOT / "data"
RESUME_DIR: Path = PROJECT_ROOT / "resume"

DEFAULT_SETTINGS: dict[str, Any] = {
    "email": "",
    "job_query": "Software Engineer",
    "expected_salary": 100000,
    "match_threshold": 7,
    "job_limit": 30,
    "auto_run": False,
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def ensure_dirs() -> None:
    for d in (CONFIG_DIR, DATA_DIR, RESUME_DIR):
        d.mkdir(parents=True, exist_ok=True)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def to_run_config(data: dict[str, Any]) -> RunConfig:
    """Validate a raw settings mapping into an immutable RunConfig."""
    merged = {**DEFAULT_SETTINGS, **{k: v for k, v in data.items() if v is not None}}
    try:
        threshold = int(merged["match_threshold"])
        job_limit = int(merged["job_limit"])
        salary = int(merged["expected_salary"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric setting: {exc}") from exc
    if not 0 <= threshold <= 10:
        raise ConfigError(f"match_threshold must be between 0 and 10, got {threshold}")
    if job_limit <= 0:
        raise ConfigError(f"job_limit must be positive, got {job_limit}")
    return RunConfig(
        email=str(merged["email"] or "").strip(),
        job_query=str(merged["job_query"] or DEFAULT_SETTINGS["job_query"]).strip(),
        expected_salary=salary,
        match_threshold=threshold,
        job_limit=job_limit,
        auto_run=_as_bool(merged["auto_run"]),
    )


class ConfigProvider:
    """Reads settings.yaml fresh on every call; nothing is cached."""

    def __init__(self, path: Path = SETTINGS_PATH) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    def current(self) -> RunConfig:
        if not self.path.exists():
            raise ConfigMissing("No settings found")
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigMissing(f"Settings file {self.path.name} is not a mapping")
        return to_run_config(data)

    def save(self, values: dict[str, Any]) -> RunConfig:
        """Merge *values* over the stored settings, validate and write back."""
        stored: dict[str, Any] = {}
        if self.path.exists():
            with open(self.path, "r", encoding="utf-8") as f:
                stored = yaml.safe_load(f) or {}
        config = to_run_config({**stored, **values})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                {
                    "email": config.email,
                    "job_query": config.job_query,
                    "expected_salary": config.expected_salary,
                    "match_threshold": config.match_threshold,
                    "job_limit": config.job_limit,
                    "auto_run": config.auto_run,
                },
                f,
                sort_keys=False,
            )
        log.info("Settings saved → %s", self.path.name)
        return config
