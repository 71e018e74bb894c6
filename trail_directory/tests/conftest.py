"""Shared fixtures for Trail Directory tests.

Provides:
- fake_db: patches supabase_client with an in-memory fake
- client: sync TestClient wired to the FastAPI app
- sample data factories for users, events, competitions, editions and more
- auth_headers: Bearer headers for a stored user
"""

import os
import re
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

# Set env vars before any trail_directory imports
os.environ.setdefault("SUPABASE_URL", "https://fake.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "fake-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("AUTH_RATE_LIMIT", "5")


# ---------------------------------------------------------------------------
# In-memory fake Supabase
# ---------------------------------------------------------------------------

class FakeQueryResult:
    def __init__(self, data=None, count=None):
        self.data = data or []
        self.count = count


def _like_to_regex(pattern: str) -> re.Pattern:
    out = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("^" + "".join(out) + "$", re.IGNORECASE | re.DOTALL)


def _compare(a, b):
    """-1/0/1, numeric when both sides are numbers, else string order."""
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return (a > b) - (a < b)
    a, b = str(a), str(b)
    return (a > b) - (a < b)


def _sort_key(value):
    if value is None:
        return (1, 0, "")
    if isinstance(value, bool):
        return (0, int(value), "")
    if isinstance(value, (int, float)):
        return (0, value, "")
    return (0, 0, str(value).lower())


class FakeQueryBuilder:
    """Filter/order/range chain over FakeDB rows, shaped like the PostgREST builder."""

    def __init__(self, store, table_name):
        self._store = store
        self._table = table_name
        self._filters = []
        self._or_groups = []
        self._orders = []
        self._limit_val = None
        self._range_start = None
        self._range_end = None
        self._columns = "*"
        self._count_mode = None
        self._upsert_data = None
        self._upsert_conflict = None
        self._update_data = None
        self._delete_mode = False
        self._insert_data = None

    def select(self, columns="*", count=None):
        self._columns = columns
        self._count_mode = count
        return self

    def insert(self, data):
        self._insert_data = data
        return self

    def upsert(self, data, on_conflict=None):
        self._upsert_data = data
        self._upsert_conflict = on_conflict
        return self

    def update(self, data):
        self._update_data = data
        return self

    def delete(self):
        self._delete_mode = True
        return self

    def eq(self, col, val):
        self._filters.append(("eq", col, val))
        return self

    def neq(self, col, val):
        self._filters.append(("neq", col, val))
        return self

    def gt(self, col, val):
        self._filters.append(("gt", col, val))
        return self

    def gte(self, col, val):
        self._filters.append(("gte", col, val))
        return self

    def lt(self, col, val):
        self._filters.append(("lt", col, val))
        return self

    def lte(self, col, val):
        self._filters.append(("lte", col, val))
        return self

    def in_(self, col, values):
        self._filters.append(("in", col, list(values)))
        return self

    def ilike(self, col, pattern):
        self._filters.append(("ilike", col, _like_to_regex(pattern)))
        return self

    def or_(self, expr):
        # Only "col.ilike.pattern" clauses are produced by the app
        group = []
        for clause in expr.split(","):
            col, op, pattern = clause.split(".", 2)
            assert op == "ilike", f"unsupported or_ operator: {op}"
            group.append((col, _like_to_regex(pattern)))
        self._or_groups.append(group)
        return self

    def order(self, col, desc=False):
        self._orders.append((col, desc))
        return self

    def limit(self, n):
        self._limit_val = n
        return self

    def range(self, start, end):
        self._range_start = start
        self._range_end = end
        return self

    def _match(self, row):
        for op, col, val in self._filters:
            row_val = row.get(col)
            if op == "eq" and row_val != val:
                return False
            if op == "neq" and row_val == val:
                return False
            if op == "in" and row_val not in val:
                return False
            if op == "ilike" and (row_val is None or not val.match(str(row_val))):
                return False
            if op in ("gt", "gte", "lt", "lte"):
                if row_val is None:
                    return False
                c = _compare(row_val, val)
                if op == "gt" and c <= 0:
                    return False
                if op == "gte" and c < 0:
                    return False
                if op == "lt" and c >= 0:
                    return False
                if op == "lte" and c > 0:
                    return False
        for group in self._or_groups:
            if not any(row.get(col) is not None and rx.match(str(row.get(col))) for col, rx in group):
                return False
        return True

    def execute(self):
        table = self._store[self._table]

        if self._insert_data is not None:
            row = dict(self._insert_data)
            if "id" not in row:
                row["id"] = str(uuid.uuid4())
            table.append(row)
            return FakeQueryResult(data=[row])

        if self._upsert_data is not None:
            row = dict(self._upsert_data)
            if self._upsert_conflict:
                conflict_cols = [c.strip() for c in self._upsert_conflict.split(",")]
                for existing in table:
                    if all(existing.get(c) == row.get(c) for c in conflict_cols):
                        existing.update(row)
                        return FakeQueryResult(data=[existing])
            row.setdefault("id", str(uuid.uuid4()))
            table.append(row)
            return FakeQueryResult(data=[row])

        if self._update_data is not None:
            updated = []
            for row in table:
                if self._match(row):
                    row.update(self._update_data)
                    updated.append(row)
            return FakeQueryResult(data=updated)

        if self._delete_mode:
            remaining = [r for r in table if not self._match(r)]
            removed = [r for r in table if self._match(r)]
            table.clear()
            table.extend(remaining)
            return FakeQueryResult(data=removed)

        # SELECT
        rows = [r for r in table if self._match(r)]

        for col, desc in reversed(self._orders):
            rows.sort(key=lambda r: _sort_key(r.get(col)), reverse=desc)

        total = len(rows)

        if self._range_start is not None:
            rows = rows[self._range_start:self._range_end + 1]
        elif self._limit_val is not None:
            rows = rows[:self._limit_val]

        return FakeQueryResult(
            data=rows,
            count=total if self._count_mode else None,
        )


class FakeDB:
    """Rows for every directory table, keyed by table name."""

    def __init__(self):
        self.store = defaultdict(list)

    def table(self, name):
        return FakeQueryBuilder(self.store, name)

    def clear(self):
        self.store.clear()


@pytest.fixture
def fake_db():
    """Empty FakeDB wired in place of the Supabase client; rate limits reset."""
    db = FakeDB()

    def fake_table(name):
        return FakeQueryBuilder(db.store, name)

    from trail_directory import rate_limit
    rate_limit.reset()

    with patch("trail_directory.supabase_client._table", side_effect=fake_table):
        with patch("trail_directory.supabase_client.get_client", return_value=MagicMock()):
            yield db


@pytest.fixture
def client(fake_db):
    """TestClient over create_app() with the scheduler lifespan disabled."""
    from contextlib import asynccontextmanager

    from fastapi.testclient import TestClient

    from trail_directory.app import create_app

    @asynccontextmanager
    async def noop_lifespan(app):
        yield

    app = create_app()
    # Keep the scheduler out of tests
    app.router.lifespan_context = noop_lifespan

    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------

def auth_headers(user):
    from trail_directory.services.auth import create_access_token

    return {"Authorization": f"Bearer {create_access_token(user)}"}


def add_user(fake_db, **overrides):
    """Store a user and return (user, headers)."""
    user = make_user(**overrides)
    fake_db.store["users"].append(user)
    return user, auth_headers(user)


# ---------------------------------------------------------------------------
# Data factories
# ---------------------------------------------------------------------------

def _now():
    return datetime.now(timezone.utc).isoformat()


def make_user(**overrides):
    uid = str(uuid.uuid4())
    defaults = {
        "id": uid,
        "email": f"runner-{uid[:8]}@example.com",
        "username": f"runner_{uid[:8]}",
        "password_hash": "",
        "first_name": "Kilian",
        "last_name": "Runner",
        "role": "ATHLETE",
        "language": "ES",
        "avatar": None,
        "bio": None,
        "phone": None,
        "country": "ES",
        "city": "Chamonix",
        "is_active": True,
        "created_at": _now(),
        "updated_at": _now(),
    }
    defaults.update(overrides)
    return defaults


def make_organizer(**overrides):
    defaults = {
        "id": str(uuid.uuid4()),
        "name": "Trail Events SL",
        "slug": "trail-events-sl",
        "description": "Organizes mountain races",
        "country": "ES",
        "website": None,
        "logo_url": None,
        "created_by_id": None,
        "status": "PUBLISHED",
        "created_at": _now(),
        "updated_at": _now(),
    }
    defaults.update(overrides)
    return defaults


def make_event(**overrides):
    defaults = {
        "id": str(uuid.uuid4()),
        "name": "Ultra Trail du Mont-Blanc",
        "slug": "ultra-trail-du-mont-blanc",
        "description": "The reference ultra around the Mont-Blanc massif",
        "country": "France",
        "city": "Chamonix",
        "latitude": 45.9237,
        "longitude": 6.8694,
        "website": None,
        "featured": False,
        "status": "PUBLISHED",
        "view_count": 0,
        "typical_month": 8,
        "first_edition_year": 2003,
        "user_id": None,
        "organizer_id": None,
        "created_at": _now(),
        "updated_at": _now(),
    }
    defaults.update(overrides)
    return defaults


def make_competition(**overrides):
    defaults = {
        "id": str(uuid.uuid4()),
        "event_id": str(uuid.uuid4()),
        "name": "UTMB 171K",
        "slug": "ultra-trail-du-mont-blanc-utmb-171k",
        "type": "ULTRA",
        "base_distance": 171.0,
        "base_elevation": 10000,
        "base_max_participants": 2300,
        "status": "PUBLISHED",
        "featured": False,
        "display_order": 0,
        "is_active": True,
        "user_id": None,
        "created_at": _now(),
        "updated_at": _now(),
    }
    defaults.update(overrides)
    return defaults


def make_edition(**overrides):
    defaults = {
        "id": str(uuid.uuid4()),
        "competition_id": str(uuid.uuid4()),
        "year": 2026,
        "slug": "utmb-171k-2026",
        "start_date": "2026-08-28",
        "end_date": "2026-08-30",
        "distance": None,
        "elevation": None,
        "max_participants": None,
        "current_participants": 0,
        "status": "UPCOMING",
        "registration_status": "OPEN",
        "featured": False,
        "is_active": True,
        "created_at": _now(),
        "updated_at": _now(),
    }
    defaults.update(overrides)
    return defaults


def make_service(**overrides):
    defaults = {
        "id": str(uuid.uuid4()),
        "name": "Refuge du Lac Blanc",
        "slug": "refuge-du-lac-blanc",
        "description": "Mountain hut above Chamonix",
        "category_id": None,
        "country": "France",
        "city": "Chamonix",
        "latitude": 45.9811,
        "longitude": 6.8889,
        "status": "PUBLISHED",
        "featured": False,
        "view_count": 0,
        "user_id": None,
        "created_at": _now(),
        "updated_at": _now(),
    }
    defaults.update(overrides)
    return defaults


def seed_tree(fake_db, owner=None, **edition_overrides):
    """Store an event -> competition -> edition chain and return the three rows."""
    event = make_event(user_id=owner["id"] if owner else None)
    competition = make_competition(event_id=event["id"])
    edition = make_edition(competition_id=competition["id"], **edition_overrides)
    fake_db.store["events"].append(event)
    fake_db.store["competitions"].append(competition)
    fake_db.store["editions"].append(edition)
    return event, competition, edition
