"""Supabase connection and query helpers for the directory tables."""

import math
import re
import threading
from datetime import datetime, timezone
from typing import Any, Iterable

from supabase import Client, create_client

from trail_directory.config import SUPABASE_SERVICE_KEY, SUPABASE_URL

_client: Client | None = None
_client_lock = threading.Lock()

# Characters with meaning inside a PostgREST or= / ilike expression
_SEARCH_UNSAFE = re.compile(r"[%,.()\[\]*:\\\"']")


def get_client() -> Client:
    """Return the Supabase client singleton (thread-safe)."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                if not SUPABASE_URL or not SUPABASE_SERVICE_KEY:
                    raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
                _client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _client


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Generic helpers
# ---------------------------------------------------------------------------

def _table(name: str):
    """Return a table query builder."""
    return get_client().table(name)


def _apply_match(q, match: dict | None):
    if match:
        for k, v in match.items():
            q = q.eq(k, v)
    return q


def _apply_filters(q, filters: Iterable[tuple[str, str, Any]] | None):
    """Apply (op, column, value) filters, e.g. ("gte", "year", 2020)."""
    for op, col, val in filters or ():
        if op == "in":
            q = q.in_(col, list(val))
        else:
            q = getattr(q, op)(col, val)
    return q


def _apply_order(q, order):
    """Order by a column name or a list of (column, desc) pairs."""
    if not order:
        return q
    if isinstance(order, str):
        order = [(order, False)]
    for col, desc in order:
        q = q.order(col, desc=desc)
    return q


def search_expr(term: str, columns: Iterable[str]) -> str | None:
    """Build a PostgREST or= expression matching *term* in any of *columns*."""
    safe = _SEARCH_UNSAFE.sub("", term or "").strip()[:100]
    if not safe:
        return None
    return ",".join(f"{col}.ilike.%{safe}%" for col in columns)


def like_literal(value: str) -> str:
    """Escape a value for use as an exact, case-insensitive ilike pattern."""
    return re.sub(r"([%_\\])", r"\\\1", (value or "").strip())


def insert(table: str, data: dict) -> dict:
    """Insert a row and return it."""
    row = dict(data)
    row.setdefault("created_at", now_iso())
    row.setdefault("updated_at", row["created_at"])
    result = _table(table).insert(row).execute()
    return result.data[0] if result.data else {}


def upsert(table: str, data: dict, on_conflict: str = "") -> dict:
    """Upsert a row and return it."""
    row = dict(data)
    row["updated_at"] = now_iso()
    if on_conflict:
        q = _table(table).upsert(row, on_conflict=on_conflict)
    else:
        q = _table(table).upsert(row)
    result = q.execute()
    return result.data[0] if result.data else {}


def update(table: str, data: dict, match: dict) -> dict:
    """Update rows matching conditions and return the first one."""
    rows = update_many(table, data, match)
    return rows[0] if rows else {}


def update_many(table: str, data: dict, match: dict | None = None,
                filters: Iterable[tuple[str, str, Any]] | None = None) -> list[dict]:
    """Update every row matching conditions."""
    values = dict(data)
    values["updated_at"] = now_iso()
    q = _table(table).update(values)
    q = _apply_filters(_apply_match(q, match), filters)
    result = q.execute()
    return result.data or []


def delete(table: str, match: dict | None = None,
           filters: Iterable[tuple[str, str, Any]] | None = None) -> list:
    """Delete rows matching conditions."""
    q = _table(table).delete()
    q = _apply_filters(_apply_match(q, match), filters)
    result = q.execute()
    return result.data or []


def select(table: str, columns: str = "*", match: dict | None = None,
           order=None, order_desc: bool = False,
           limit: int | None = None, offset: int | None = None,
           filters: Iterable[tuple[str, str, Any]] | None = None,
           search: str | None = None) -> list[dict]:
    """Select rows with optional filtering, ordering, and pagination."""
    q = _table(table).select(columns)
    q = _apply_filters(_apply_match(q, match), filters)
    if search:
        q = q.or_(search)
    if isinstance(order, str):
        q = q.order(order, desc=order_desc)
    else:
        q = _apply_order(q, order)
    if offset:
        q = q.range(offset, offset + (limit or 100) - 1)
    elif limit:
        q = q.limit(limit)
    result = q.execute()
    return result.data or []


def select_one(table: str, columns: str = "*", match: dict | None = None) -> dict | None:
    """Select a single row."""
    rows = select(table, columns, match, limit=1)
    return rows[0] if rows else None


def select_in(table: str, column: str, values: Iterable, columns: str = "*") -> list[dict]:
    """Select rows whose *column* is one of *values*."""
    values = [v for v in dict.fromkeys(values) if v is not None]
    if not values:
        return []
    result = _table(table).select(columns).in_(column, values).execute()
    return result.data or []


def count(table: str, match: dict | None = None,
          filters: Iterable[tuple[str, str, Any]] | None = None) -> int:
    """Count rows matching conditions."""
    q = _table(table).select("*", count="exact")
    q = _apply_filters(_apply_match(q, match), filters)
    result = q.execute()
    return result.count or 0


def paginate(table: str, page: int = 1, limit: int = 20, match: dict | None = None,
             filters: Iterable[tuple[str, str, Any]] | None = None,
             search: str | None = None, order=None) -> dict:
    """Return one page of rows plus totals in the list envelope."""
    page = max(page, 1)
    offset = (page - 1) * limit
    q = _table(table).select("*", count="exact")
    q = _apply_filters(_apply_match(q, match), filters)
    if search:
        q = q.or_(search)
    q = _apply_order(q, order or [("created_at", True)])
    result = q.range(offset, offset + limit - 1).execute()
    return page_envelope(result.data or [], result.count or 0, page, limit)


def page_envelope(rows: list, total: int, page: int, limit: int) -> dict:
    return {
        "results": rows,
        "count": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def get_user(user_id: str) -> dict | None:
    return select_one("users", match={"id": user_id})


def get_user_by_email(email: str) -> dict | None:
    return select_one("users", match={"email": email.strip().lower()})


def get_user_by_username(username: str) -> dict | None:
    return select_one("users", match={"username": username})


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------

def store_refresh_token(token: str, user_id: str, expires_at: datetime) -> dict:
    """Persist an issued refresh token."""
    return insert("refresh_tokens", {
        "token": token,
        "user_id": user_id,
        "expires_at": expires_at.isoformat(),
    })


def get_refresh_token(token: str) -> dict | None:
    return select_one("refresh_tokens", match={"token": token})


def delete_refresh_token(token: str) -> int:
    return len(delete("refresh_tokens", {"token": token}))


def delete_user_refresh_tokens(user_id: str) -> int:
    return len(delete("refresh_tokens", {"user_id": user_id}))


def purge_expired_refresh_tokens() -> int:
    """Delete refresh tokens past their expiry. Returns the number removed."""
    return len(delete("refresh_tokens", filters=[("lt", "expires_at", now_iso())]))


# ---------------------------------------------------------------------------
# Audit Log
# ---------------------------------------------------------------------------

def log_action(action: str, entity_type: str = "", entity_id: str = "", details: str = "") -> dict:
    """Log a moderation or admin action."""
    return insert("audit_log", {
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "details": details,
    })


def get_audit_log(limit: int = 50) -> list[dict]:
    """Get recent audit log entries."""
    return select("audit_log", order="created_at", order_desc=True, limit=limit)
