from __future__ import annotations

import copy
import re
import uuid
from types import SimpleNamespace

import pytest

from journal.app.common import supabase_client
from journal.app.common.config import reset_config

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"
TOKEN = "valid-token"
OTHER_TOKEN = "other-token"


class StubResponse:
    def __init__(self, data, count=None) -> None:
        self.data = data
        self.count = count


def _like(pattern: str, value) -> bool:
    if value is None:
        return False
    parts = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            parts.append(re.escape(next(chars, "\\")))
        elif ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.fullmatch("".join(parts), str(value), flags=re.IGNORECASE) is not None


def _compare(op):
    def check(value, target):
        if value is None:
            return False
        if isinstance(value, (int, float)) and not isinstance(target, (int, float)):
            target = float(target)
        return op(value, target)
    return check


class StubQuery:
    """Subset of the PostgREST request builder backed by a list of dicts."""

    def __init__(self, db: "StubSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.count_mode = None
        self.head = False
        self.payload = None
        self.filters: list = []
        self.orders: list = []
        self.window = None
        self.max_rows = None
        self.single_row = False

    # builders
    def select(self, columns="*", count=None, head=False):
        self.columns, self.count_mode, self.head = columns, count, head
        return self

    def insert(self, rows):
        self.action, self.payload = "insert", rows
        return self

    def update(self, changes):
        self.action, self.payload = "update", changes
        return self

    def delete(self):
        self.action = "delete"
        return self

    def _filter(self, column, check, target):
        self.filters.append((column, check, target))
        return self

    def eq(self, column, value):
        return self._filter(column, lambda v, t: v == t, value)

    def gt(self, column, value):
        return self._filter(column, _compare(lambda v, t: v > t), value)

    def lt(self, column, value):
        return self._filter(column, _compare(lambda v, t: v < t), value)

    def gte(self, column, value):
        return self._filter(column, _compare(lambda v, t: v >= t), value)

    def lte(self, column, value):
        return self._filter(column, _compare(lambda v, t: v <= t), value)

    def ilike(self, column, pattern):
        return self._filter(column, lambda v, t: _like(t, v), pattern)

    def ov(self, column, values):
        return self._filter(
            column, lambda v, t: bool(v) and bool(set(v) & set(t)), list(values)
        )

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self.window = (start, end)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def single(self):
        self.single_row = True
        return self

    # execution
    def _matches(self, row) -> bool:
        return all(check(row.get(col), target) for col, check, target in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        keys = [c.strip() for c in self.columns.split(",")]
        return {k: copy.deepcopy(row.get(k)) for k in keys}

    def execute(self):
        self.db.calls.append((self.table, self.action))
        if self.table in self.db.fail_tables:
            raise RuntimeError(f"relation {self.table} is unavailable")

        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            batch = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in batch:
                row = {"id": str(uuid.uuid4()), "created_at": "2024-01-01T00:00:00Z", **item}
                rows.append(row)
                created.append(copy.deepcopy(row))
            self.db.inserts.append((self.table, len(batch)))
            return StubResponse(created)

        matched = [r for r in rows if self._matches(r)]

        if self.action == "update":
            for r in matched:
                r.update(self.payload)
            return StubResponse(copy.deepcopy(matched))

        if self.action == "delete":
            self.db.tables[self.table] = [r for r in rows if r not in matched]
            return StubResponse(copy.deepcopy(matched))

        for column, desc in reversed(self.orders):
            present = [r for r in matched if r.get(column) is not None]
            missing = [r for r in matched if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=desc)
            matched = missing + present if desc else present + missing

        count = len(matched) if self.count_mode == "exact" else None
        if self.window is not None:
            start, end = self.window
            matched = matched[start:end + 1]
        if self.max_rows is not None:
            matched = matched[: self.max_rows]

        data = [] if self.head else [self._project(r) for r in matched]
        if self.single_row:
            if len(data) != 1:
                raise RuntimeError("JSON object requested, multiple (or no) rows returned")
            data = data[0]
        return StubResponse(data, count)


class StubAuth:
    def __init__(self, users: dict) -> None:
        self.users = users

    def get_user(self, token):
        user_id = self.users.get(token)
        if user_id is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=f"{user_id[:4]}@example.com"))


class StubSupabase:
    def __init__(self, tables=None, users=None) -> None:
        self.tables = tables if tables is not None else {"trades": [], "strategies": []}
        self.auth = StubAuth(users or {TOKEN: USER_ID, OTHER_TOKEN: OTHER_USER_ID})
        self.calls: list = []
        self.inserts: list = []
        self.fail_tables: set = set()
        self.closed = 0

    def table(self, name):
        return StubQuery(self, name)

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.closed += 1


def trade_row(**overrides):
    row = {
        "id": str(uuid.uuid4()),
        "user_id": USER_ID,
        "symbol": "AAPL",
        "side": "Buy",
        "market": "Stock",
        "trade_date": "2024-03-04",
        "quantity": 100,
        "entry_price": 10.0,
        "exit_price": 11.0,
        "pnl": 100.0,
        "strategy_id": None,
        "entry_time": "09:30",
        "exit_time": "10:30",
        "emotional_state": ["DISCIPLINE"],
        "notes": "",
        "created_at": "2024-03-04T10:30:00Z",
    }
    row.update(overrides)
    return row


@pytest.fixture(autouse=True)
def journal_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://stub.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    reset_config()
    supabase_client.reset_client()
    yield
    reset_config()
    supabase_client.reset_client()


@pytest.fixture
def stub_db(monkeypatch):
    db = StubSupabase()
    monkeypatch.setattr(supabase_client, "get_client", lambda: db)
    monkeypatch.setattr(supabase_client, "client_for_token", lambda token: db)
    return db


@pytest.fixture
def client(stub_db):
    from fastapi.testclient import TestClient

    from journal.app.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TOKEN}"}
