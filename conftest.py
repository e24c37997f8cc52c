"""
Shared pytest fixtures: an in-memory stand-in for the Supabase query builder,
so the portal can be tested without a network.
"""
import re
from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest

from portal.database import DatabaseClient
from portal.models import UserProfile

TODAY = date(2026, 3, 15)


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


def _like_to_regex(pattern: str) -> re.Pattern:
    out, i = [], 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        # PostgREST accepts * as an alias for %
        out.append(".*" if ch in "%*" else "." if ch == "_" else re.escape(ch))
        i += 1
    return re.compile("^" + "".join(out) + "$", re.IGNORECASE | re.DOTALL)


class FakeQuery:
    def __init__(self, backend, table):
        self.backend = backend
        self.table = table
        self.op = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.order_by = None
        self.bounds = None
        self.max_rows = None

    # --- operations ---
    def select(self, *columns, count=None):
        self.op = "select"
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, patch):
        self.op, self.payload = "update", patch
        return self

    def upsert(self, rows, on_conflict=None):
        self.op, self.payload, self.on_conflict = "upsert", rows, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filters / modifiers ---
    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def ilike(self, column, pattern):
        rx = _like_to_regex(pattern)
        self.filters.append(lambda r: r.get(column) is not None and bool(rx.match(str(r[column]))))
        return self

    def is_(self, column, value):
        assert value == "null"
        self.filters.append(lambda r: r.get(column) is None)
        return self

    def gte(self, column, value):
        self.filters.append(lambda r: r.get(column) is not None and str(r[column]) >= value)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.backend.calls.append((self.table, self.op))
        failure = self.backend.failures.get((self.table, self.op))
        if failure is not None and failure(self):
            raise RuntimeError(f"simulated {self.op} failure on {self.table}")
        rows = self.backend.tables.setdefault(self.table, [])

        if self.op == "select":
            found = [dict(r) for r in rows if self._matches(r)]
            if self.order_by:
                col, desc = self.order_by
                found.sort(key=lambda r: (r.get(col) is None, str(r.get(col))), reverse=desc)
            if self.bounds:
                found = found[self.bounds[0] : self.bounds[1] + 1]
            if self.max_rows is not None:
                found = found[: self.max_rows]
            return FakeResponse(found, len(found))

        if self.op == "insert":
            new = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for row in new:
                row = dict(row)
                row.setdefault("id", str(uuid4()))
                row.setdefault("created_at", datetime(2026, 1, 1).isoformat())
                rows.append(row)
                created.append(dict(row))
            return FakeResponse(created)

        if self.op == "update":
            changed = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    changed.append(dict(row))
            return FakeResponse(changed)

        if self.op == "upsert":
            keys = (self.on_conflict or "id").split(",")
            new = self.payload if isinstance(self.payload, list) else [self.payload]
            result = []
            for row in new:
                existing = next((r for r in rows if all(r.get(k) == row.get(k) for k in keys)), None)
                if existing is not None:
                    existing.update(row)
                    result.append(dict(existing))
                else:
                    row = dict(row)
                    row.setdefault("id", str(uuid4()))
                    rows.append(row)
                    result.append(dict(row))
            return FakeResponse(result)

        if self.op == "delete":
            gone = [r for r in rows if self._matches(r)]
            self.backend.tables[self.table] = [r for r in rows if not self._matches(r)]
            return FakeResponse([dict(r) for r in gone])

        raise AssertionError(f"unknown op {self.op}")


class FakeSupabase:
    """Minimal supabase.Client look-alike: client.table(name).<query>.execute()."""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failures = {}

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op, when=lambda query: True):
        self.failures[(table, op)] = when

    def writes(self, table="profiles"):
        return [c for c in self.calls if c[0] == table and c[1] in ("insert", "update", "upsert", "delete")]


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def db(supabase):
    return DatabaseClient(supabase)


@pytest.fixture
def make_profile(supabase):
    """Insert a profile row and return its snapshot."""

    def _make(username, days_ago=None, **fields):
        last = TODAY - timedelta(days=days_ago) if days_ago is not None else None
        profile = UserProfile(
            id=str(uuid4()),
            username=username,
            last_mock_date=last,
            created_at=fields.pop("created_at", "2025-01-01T00:00:00"),
            **fields,
        )
        supabase.tables.setdefault("profiles", []).append(profile.to_row())
        return profile

    return _make


@pytest.fixture
def add_dependents(supabase):
    """Give a user one score and one note."""

    def _add(user_id):
        supabase.tables.setdefault("scores", []).append(
            {"id": str(uuid4()), "user_id": user_id, "score": 5, "total": 10, "percentage": 50.0,
             "created_at": "2026-01-01T10:00:00"}
        )
        supabase.tables.setdefault("personal_notes", []).append(
            {"id": str(uuid4()), "user_id": user_id, "subject": "math", "content": "x"}
        )

    return _add
