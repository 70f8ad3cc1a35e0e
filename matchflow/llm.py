"""OpenAI-compatible chat client for the Mistral API."""
from __future__ import annotations

import json
from typing import Any

from matchflow.config import get_env

DEFAULT_BASE_URL = "https://api.mistral.ai/v1"
DEFAULT_MODEL = "mistral-small-latest"


def api_key() -> str:
    return get_env("MISTRAL_API_KEY")


def model_name() -> str:
    return get_env("MISTRAL_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL


def make_client(*, timeout: float, max_retries: int = 0):
    from openai import OpenAI

    return OpenAI(
        api_key=api_key(),
        base_url=get_env("MISTRAL_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL,
        timeout=timeout,
        max_retries=max_retries,
    )


def extract_json(raw: str) -> dict[str, Any]:
    """Parse the outermost JSON object in a model reply."""
    start = raw.find("{")
    end = raw.rfind("}") + 1
    if start == -1 or end == 0:
        raise ValueError("LLM did not return valid JSON")
    data = json.loads(raw[start:end])
    if not isinstance(data, dict):
        raise ValueError("LLM JSON is not an object")
    return data
