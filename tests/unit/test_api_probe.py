from __future__ import annotations

import json

import requests

from journal.app.research import api_probe
from journal.app.research.api_probe import PAGE_KEYS, ProbeCase, run_case, run_probe


class StubHttpResponse:
    def __init__(self, url, status_code, body, headers) -> None:
        self.url = url
        self.status_code = status_code
        self._body = body
        self.headers = headers

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class StubSession:
    """Answers every GET with a canned status and body, echoing X-Request-ID."""

    def __init__(self, status_code=200, body=None, echo=True, fail=False) -> None:
        self.status_code = status_code
        self.body = body if body is not None else {}
        self.echo = echo
        self.fail = fail
        self.requests = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.requests.append((url, params, dict(headers or {})))
        if self.fail:
            raise requests.ConnectionError("connection refused")
        echoed = {"X-Request-ID": headers["X-Request-ID"]} if self.echo else {}
        return StubHttpResponse(url, self.status_code, self.body, echoed)


def _page_body():
    return {k: 0 for k in PAGE_KEYS}


def test_passing_case_sends_token_and_request_id() -> None:
    session = StubSession(body=_page_body())
    case = ProbeCase("trades", "/api/confluence-trades", {"page": 1}, expect_keys=PAGE_KEYS)

    result = run_case(session, "http://api/", case, "jwt", timeout=1)

    assert result.passed
    assert result.status == 200
    url, params, headers = session.requests[0]
    assert url == "http://api/api/confluence-trades"
    assert params == {"page": 1}
    assert headers["Authorization"] == "Bearer jwt"
    assert headers["X-Request-ID"] == result.request_id


def test_problems_are_reported() -> None:
    session = StubSession(status_code=200, body={"trades": []}, echo=False)
    case = ProbeCase("trades", "/api/confluence-trades", expect_keys=PAGE_KEYS)

    result = run_case(session, "http://api", case, "jwt", timeout=1)

    assert not result.passed
    assert any(p.startswith("missing keys") for p in result.problems)
    assert "X-Request-ID not echoed" in result.problems


def test_unexpected_status() -> None:
    session = StubSession(status_code=500)
    result = run_case(session, "http://api", ProbeCase("health", "/health"), None, timeout=1)
    assert result.problems[0] == "status 500, expected [200]"


def test_connection_errors_fail_the_case() -> None:
    result = run_case(StubSession(fail=True), "http://api", ProbeCase("health", "/health"), None, 1)
    assert not result.passed
    assert result.status is None
    assert "connection refused" in result.problems[0]


def test_probe_skips_authenticated_cases_without_token() -> None:
    session = StubSession(status_code=200)
    cases = [
        ProbeCase("health", "/health", authenticated=False),
        ProbeCase("stats", "/api/confluence-stats"),
    ]
    report = run_probe("http://api", None, cases, session=session)
    assert report["passed"] == 1
    assert report["failed"] == 0
    assert [r["name"] for r in report["results"]] == ["health"]


def test_main_writes_report_and_exit_code(tmp_path, monkeypatch) -> None:
    out = tmp_path / "report.json"
    monkeypatch.setattr(
        api_probe,
        "run_probe",
        lambda base_url, token, timeout: {"passed": 3, "failed": 1, "results": []},
    )
    assert api_probe.main(["--output", str(out)]) == 1
    assert json.loads(out.read_text())["failed"] == 1


def test_invalid_date_case_expects_400_only() -> None:
    case = next(c for c in api_probe.DEFAULT_CASES if c.name == "stats invalid date")
    assert tuple(case.expect_status) == (400,)

    result = run_case(StubSession(status_code=200), "http://api", case, "jwt", timeout=1)
    assert not result.passed
