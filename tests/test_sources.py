"""Tests for job sources (network calls are monkeypatched)."""

from __future__ import annotations

import pytest  # type: ignore
import requests

import matchflow.sources.jsearch as jsearch
from matchflow.errors import UpstreamSearchError
from matchflow.sources import JSearchSource, MockSource, get_source


class _Resp:
    def __init__(self, status: int = 200, payload=None) -> None:
        self.status_code = status
        self._payload = payload if payload is not None else {}

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


HIT = {
    "job_title": "Backend Engineer",
    "employer_name": "Globex",
    "job_employment_type": "FULLTIME",
    "job_is_remote": True,
    "job_min_salary": 100000,
    "job_max_salary": 150000,
    "job_salary_period": "YEAR",
    "job_required_skills": ["Python", "AWS"],
    "job_apply_link": "https://globex.example.com/apply",
    "job_description": "Build things.",
}


def _env(values):
    return lambda key, default="": values.get(key, default)


def test_search_maps_hits_in_order(monkeypatch) -> None:
    captured = {}

    def fake_get(url, params, headers, timeout):
        captured.update(url=url, params=params, headers=headers, timeout=timeout)
        second = dict(HIT, job_title="Frontend Engineer", job_required_skills=None)
        return _Resp(payload={"data": [HIT, second]})

    monkeypatch.setattr(jsearch.requests, "get", fake_get)
    source = JSearchSource(_env({"JSEARCH_API_KEY": "k"}))

    postings = source.search("Python Developer", 10)

    assert [p.title for p in postings] == ["Backend Engineer", "Frontend Engineer"]
    first = postings[0]
    assert first.company == "Globex" and first.remote is True
    assert first.salary_text == "$100,000 - $150,000 / year"
    assert first.skills == ["Python", "AWS"]
    assert first.raw is HIT
    assert postings[1].skills == []
    assert captured["params"] == {"query": "Python Developer", "num_pages": 10}
    assert captured["headers"] == {"x-api-key": "k"}
    assert captured["timeout"] == jsearch.REQUEST_TIMEOUT


def test_auth_failure_is_upstream_error(monkeypatch) -> None:
    monkeypatch.setattr(jsearch.requests, "get", lambda *a, **kw: _Resp(status=403))
    with pytest.raises(UpstreamSearchError, match="403"):
        JSearchSource(_env({"JSEARCH_API_KEY": "bad"})).search("x", 1)


def test_server_error_is_upstream_error(monkeypatch) -> None:
    monkeypatch.setattr(jsearch.requests, "get", lambda *a, **kw: _Resp(status=500))
    with pytest.raises(UpstreamSearchError):
        JSearchSource(_env({"JSEARCH_API_KEY": "k"})).search("x", 1)


def test_empty_payload(monkeypatch) -> None:
    monkeypatch.setattr(jsearch.requests, "get", lambda *a, **kw: _Resp(payload={"data": None}))
    assert JSearchSource(_env({"JSEARCH_API_KEY": "k"})).search("x", 1) == []


def test_get_source_falls_back_to_mock() -> None:
    assert isinstance(get_source(_env({})), MockSource)
    assert isinstance(get_source(_env({"JSEARCH_API_KEY": "k"})), JSearchSource)


def test_mock_source_uses_query() -> None:
    postings = MockSource().search("Platform Engineer", 10)
    assert postings[0].title == "Platform Engineer"
    assert len(postings) == 3
