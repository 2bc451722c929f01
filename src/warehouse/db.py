"""DuckDB warehouse for analytics events and storefront rows.

Events are append-only and keyed by event_id, so concurrent inserts from
independent clients never conflict. Each operation runs on its own
cursor, which lets a background tracker thread share the connection.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import duckdb

from src.collector.errors import BackendUnavailable
from src.collector.schemas import Event

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS analytics_events (
        event_id VARCHAR PRIMARY KEY,
        event_type VARCHAR NOT NULL,
        brand_variant VARCHAR NOT NULL,
        session_id VARCHAR NOT NULL,
        metadata VARCHAR NOT NULL DEFAULT '{}',
        created_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pre_orders (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        email VARCHAR NOT NULL,
        book_title VARCHAR NOT NULL,
        created_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS contact_messages (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        email VARCHAR NOT NULL,
        message VARCHAR NOT NULL,
        created_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS saved_books (
        user_id VARCHAR NOT NULL,
        book_title VARCHAR NOT NULL,
        created_at TIMESTAMP NOT NULL,
        PRIMARY KEY (user_id, book_title)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_roles (
        user_id VARCHAR NOT NULL,
        role VARCHAR NOT NULL,
        PRIMARY KEY (user_id, role)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS subscription_selections (
        id VARCHAR PRIMARY KEY,
        user_id VARCHAR NOT NULL,
        tier_name VARCHAR NOT NULL,
        price_monthly DOUBLE NOT NULL,
        created_at TIMESTAMP NOT NULL
    )
    """,
]

TABLES = frozenset({
    "analytics_events",
    "pre_orders",
    "contact_messages",
    "saved_books",
    "user_roles",
    "subscription_selections",
})

EVENT_COLUMNS = ("event_id", "event_type", "brand_variant", "session_id", "metadata", "created_at")


def get_connection(path: str = "data/analytics.duckdb") -> duckdb.DuckDBPyConnection:
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(path)


def init_db(conn: duckdb.DuckDBPyConnection) -> None:
    for ddl in SCHEMA:
        conn.execute(ddl)


def _to_naive_utc(value: datetime | str) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _event_row(row: dict) -> tuple:
    metadata = row.get("metadata") or {}
    return (
        row["event_id"],
        row["event_type"],
        row["brand_variant"],
        row["session_id"],
        json.dumps(metadata, sort_keys=True),
        _to_naive_utc(row["created_at"]),
    )


INSERT_EVENT_SQL = (
    f"INSERT INTO analytics_events ({', '.join(EVENT_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?) "
    "ON CONFLICT (event_id) DO NOTHING"
)
# Bound parameters per existence check
_ID_CHUNK = 500


def _existing_ids(cur: duckdb.DuckDBPyConnection, ids: list[str]) -> set[str]:
    """Which of the given ids are already stored."""
    found: set[str] = set()
    for start in range(0, len(ids), _ID_CHUNK):
        chunk = ids[start:start + _ID_CHUNK]
        placeholders = ", ".join("?" for _ in chunk)
        found.update(
            r[0]
            for r in cur.execute(
                f"SELECT event_id FROM analytics_events WHERE event_id IN ({placeholders})",
                chunk,
            ).fetchall()
        )
    return found


def insert_new_events(conn: duckdb.DuckDBPyConnection, rows: list[dict]) -> list[str]:
    """Insert event dicts whose ids are not stored yet.

    Returns the ids that were inserted, in input order.
    """
    if not rows:
        return []

    cur = conn.cursor()
    seen = _existing_ids(cur, list({r["event_id"] for r in rows}))

    fresh: list[tuple] = []
    for row in rows:
        if row["event_id"] in seen:
            continue
        seen.add(row["event_id"])
        fresh.append(_event_row(row))

    if fresh:
        cur.executemany(INSERT_EVENT_SQL, fresh)
    return [r[0] for r in fresh]


def insert_events(conn: duckdb.DuckDBPyConnection, rows: list[dict]) -> tuple[int, int]:
    """Insert event dicts, skipping ids already present.

    Returns (inserted, duplicates).
    """
    inserted = insert_new_events(conn, rows)
    return len(inserted), len(rows) - len(inserted)


def _decode_event_row(values: tuple) -> dict[str, Any]:
    row = dict(zip(EVENT_COLUMNS, values))
    try:
        row["metadata"] = json.loads(row["metadata"]) if row["metadata"] else {}
    except json.JSONDecodeError:
        row["metadata"] = {}
    if isinstance(row["created_at"], datetime):
        row["created_at"] = row["created_at"].replace(tzinfo=timezone.utc)
    return row


def fetch_events(conn: duckdb.DuckDBPyConnection) -> list[dict[str, Any]]:
    """Snapshot of every recorded event, oldest first."""
    result = conn.cursor().execute(
        f"SELECT {', '.join(EVENT_COLUMNS)} FROM analytics_events ORDER BY created_at, event_id"
    ).fetchall()
    return [_decode_event_row(r) for r in result]


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Warehouse:
    """Row storage used by the tracker, storefront and dashboard.

    All DuckDB failures surface as BackendUnavailable.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        self.conn = conn

    @classmethod
    def open(cls, path: str) -> "Warehouse":
        try:
            conn = get_connection(path)
            init_db(conn)
        except duckdb.Error as exc:
            raise BackendUnavailable(f"Cannot open warehouse at {path}: {exc}") from exc
        return cls(conn)

    def close(self) -> None:
        self.conn.close()

    def _execute(self, sql: str, params: list | None = None) -> duckdb.DuckDBPyConnection:
        try:
            return self.conn.cursor().execute(sql, params or [])
        except duckdb.Error as exc:
            raise BackendUnavailable(str(exc)) from exc

    @staticmethod
    def _check_table(table: str) -> None:
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")

    # --- Event store ---

    def insert(self, event: Event) -> None:
        self._execute(INSERT_EVENT_SQL, list(_event_row(event.model_dump(mode="json"))))

    def select_all(self, table: str) -> list[dict[str, Any]]:
        self._check_table(table)
        if table == "analytics_events":
            try:
                return fetch_events(self.conn)
            except duckdb.Error as exc:
                raise BackendUnavailable(str(exc)) from exc
        cur = self._execute(f"SELECT * FROM {table}")
        columns = [d[0] for d in cur.description]
        return [dict(zip(columns, r)) for r in cur.fetchall()]

    def count(self, table: str) -> int:
        self._check_table(table)
        return self._execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    # --- Storefront rows ---

    def add_pre_order(self, name: str, email: str, book_title: str) -> str:
        row_id = uuid.uuid4().hex
        self._execute(
            "INSERT INTO pre_orders VALUES (?, ?, ?, ?, ?)",
            [row_id, name, email, book_title, _now()],
        )
        return row_id

    def add_contact_message(self, name: str, email: str, message: str) -> str:
        row_id = uuid.uuid4().hex
        self._execute(
            "INSERT INTO contact_messages VALUES (?, ?, ?, ?, ?)",
            [row_id, name, email, message, _now()],
        )
        return row_id

    def add_saved_book(self, user_id: str, book_title: str) -> bool:
        exists = self._execute(
            "SELECT 1 FROM saved_books WHERE user_id = ? AND book_title = ?",
            [user_id, book_title],
        ).fetchone()
        if exists:
            return False
        self._execute(
            "INSERT INTO saved_books VALUES (?, ?, ?)",
            [user_id, book_title, _now()],
        )
        return True

    def remove_saved_book(self, user_id: str, book_title: str) -> None:
        self._execute(
            "DELETE FROM saved_books WHERE user_id = ? AND book_title = ?",
            [user_id, book_title],
        )

    def saved_books_for(self, user_id: str) -> list[str]:
        rows = self._execute(
            "SELECT book_title FROM saved_books WHERE user_id = ? ORDER BY created_at, book_title",
            [user_id],
        ).fetchall()
        return [r[0] for r in rows]

    def add_role(self, user_id: str, role: str) -> None:
        exists = self._execute(
            "SELECT 1 FROM user_roles WHERE user_id = ? AND role = ?",
            [user_id, role],
        ).fetchone()
        if not exists:
            self._execute("INSERT INTO user_roles VALUES (?, ?)", [user_id, role])

    def roles_for(self, user_id: str) -> list[str]:
        rows = self._execute(
            "SELECT role FROM user_roles WHERE user_id = ? ORDER BY role",
            [user_id],
        ).fetchall()
        return [r[0] for r in rows]

    def add_subscription(self, user_id: str, tier_name: str, price_monthly: float) -> str:
        row_id = uuid.uuid4().hex
        self._execute(
            "INSERT INTO subscription_selections VALUES (?, ?, ?, ?, ?)",
            [row_id, user_id, tier_name, price_monthly, _now()],
        )
        return row_id

    def popular_books(self, limit: int = 5) -> list[tuple[str, int]]:
        """Most pre-ordered titles, highest count first."""
        rows = self._execute(
            f"""
            SELECT book_title, COUNT(*) AS n
            FROM pre_orders
            GROUP BY book_title
            ORDER BY n DESC, book_title
            LIMIT {int(limit)}
            """
        ).fetchall()
        return [(title, int(n)) for title, n in rows]

    def add_events(self, events: Iterable[Event]) -> list[str]:
        """Bulk-load events. Returns the ids actually inserted."""
        try:
            return insert_new_events(self.conn, [e.model_dump(mode="json") for e in events])
        except duckdb.Error as exc:
            raise BackendUnavailable(str(exc)) from exc
