"""
Smoke probe for a running journal API.

Calls the health, stats and listing endpoints with a spread of filter and
pagination edge cases, checks status codes and response shapes, and writes
a JSON report:

    python -m journal.app.research.api_probe --base-url http://localhost:8000 --token <jwt>
"""

import argparse
import json
import logging
import sys
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import requests

logger = logging.getLogger(__name__)

STATS_KEYS = {
    "totalTrades", "totalPnL", "winRate", "avgTradeSize",
    "lastSyncTime", "emotionalData", "psychologicalMetrics", "validationWarnings",
}
PAGE_KEYS = {
    "trades", "totalCount", "currentPage", "totalPages", "hasNextPage", "hasPreviousPage",
}


@dataclass
class ProbeCase:
    name: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)
    expect_status: Sequence[int] = (200,)
    expect_keys: Optional[set] = None
    authenticated: bool = True


@dataclass
class ProbeResult:
    name: str
    url: str
    status: Optional[int]
    elapsed_ms: float
    passed: bool
    request_id: str
    problems: List[str] = field(default_factory=list)


DEFAULT_CASES = [
    ProbeCase("health", "/health", authenticated=False),
    ProbeCase("stats unauthenticated", "/api/confluence-stats", expect_status=(401,), authenticated=False),
    ProbeCase("stats", "/api/confluence-stats", expect_keys=STATS_KEYS),
    ProbeCase("stats emotion filter", "/api/confluence-stats",
              {"emotionalStates": "FOMO,DISCIPLINE"}, expect_keys=STATS_KEYS),
    ProbeCase("stats unknown emotion", "/api/confluence-stats",
              {"emotionalStates": "NOT_AN_EMOTION"}, expect_keys=STATS_KEYS),
    ProbeCase("stats profitable buys", "/api/confluence-stats",
              {"pnlFilter": "profitable", "side": "Buy"}, expect_keys=STATS_KEYS),
    ProbeCase("stats date range", "/api/confluence-stats",
              {"dateFrom": "2024-01-01", "dateTo": "2024-12-31"}, expect_keys=STATS_KEYS),
    ProbeCase("stats invalid date", "/api/confluence-stats",
              {"dateFrom": "not-a-date"}, expect_status=(400,)),
    ProbeCase("trades first page", "/api/confluence-trades",
              {"page": 1, "limit": 10}, expect_keys=PAGE_KEYS),
    ProbeCase("trades sorted by pnl", "/api/confluence-trades",
              {"sortBy": "pnl", "sortOrder": "asc"}, expect_keys=PAGE_KEYS),
    ProbeCase("trades page past end", "/api/confluence-trades",
              {"page": 999}, expect_keys=PAGE_KEYS),
    ProbeCase("trades page zero", "/api/confluence-trades", {"page": 0}, expect_keys=PAGE_KEYS),
    ProbeCase("trades negative page", "/api/confluence-trades", {"page": -1}, expect_keys=PAGE_KEYS),
    ProbeCase("trades limit zero", "/api/confluence-trades", {"limit": 0}, expect_keys=PAGE_KEYS),
    ProbeCase("trades huge limit", "/api/confluence-trades", {"limit": 9999}, expect_keys=PAGE_KEYS),
    ProbeCase("filter options", "/api/filter-options"),
    ProbeCase("dashboard summary", "/dashboard/summary"),
    ProbeCase("vrating", "/dashboard/vrating"),
]


def run_case(
    session: requests.Session,
    base_url: str,
    case: ProbeCase,
    token: Optional[str],
    timeout: float,
) -> ProbeResult:
    url = f"{base_url.rstrip('/')}{case.path}"
    request_id = uuid.uuid4().hex
    headers = {"X-Request-ID": request_id}
    if case.authenticated and token:
        headers["Authorization"] = f"Bearer {token}"

    start = time.perf_counter()
    try:
        resp = session.get(url, params=case.params, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        elapsed = (time.perf_counter() - start) * 1000
        return ProbeResult(case.name, url, None, round(elapsed, 1), False, request_id, [str(e)])
    elapsed = (time.perf_counter() - start) * 1000

    problems = []
    if resp.status_code not in case.expect_status:
        problems.append(f"status {resp.status_code}, expected {list(case.expect_status)}")
    if case.expect_keys and resp.status_code == 200:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            problems.append("response is not a JSON object")
        else:
            missing = case.expect_keys - body.keys()
            if missing:
                problems.append(f"missing keys: {sorted(missing)}")
    if resp.headers.get("X-Request-ID") != request_id:
        problems.append("X-Request-ID not echoed")

    return ProbeResult(
        name=case.name,
        url=resp.url,
        status=resp.status_code,
        elapsed_ms=round(elapsed, 1),
        passed=not problems,
        request_id=request_id,
        problems=problems,
    )


def run_probe(
    base_url: str,
    token: Optional[str],
    cases: Sequence[ProbeCase] = DEFAULT_CASES,
    timeout: float = 10.0,
    session: Optional[requests.Session] = None,
) -> Dict[str, Any]:
    session = session or requests.Session()
    results = []
    for case in cases:
        if case.authenticated and not token:
            logger.info(f"Skipping {case.name}: no token")
            continue
        result = run_case(session, base_url, case, token, timeout)
        level = logging.INFO if result.passed else logging.WARNING
        logger.log(level, f"{'PASS' if result.passed else 'FAIL'} {case.name} ({result.status}, {result.elapsed_ms} ms)")
        results.append(result)

    return {
        "baseUrl": base_url,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "passed": sum(1 for r in results if r.passed),
        "failed": sum(1 for r in results if not r.passed),
        "results": [asdict(r) for r in results],
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Probe a running journal API")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--token", help="Bearer token for authenticated routes")
    parser.add_argument("--timeout", type=float, default=10.0)
    parser.add_argument("--output", default="api_probe_report.json")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    report = run_probe(args.base_url, args.token, timeout=args.timeout)
    with open(args.output, "w") as f:
        json.dump(report, f, indent=2)

    logger.info(f"Probe finished: {report['passed']} passed, {report['failed']} failed -> {args.output}")
    return 1 if report["failed"] else 0


if __name__ == "__main__":
    sys.exit(main())
