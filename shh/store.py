"""SQLite-backed host catalog.

One table of hosts plus a small key/value ``meta`` table for flags such as
"history already imported". All host strings are validated before they are
written, so everything read back is safe to hand to the launcher.
"""

from __future__ import annotations

import enum
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from shh.catalog import HostRecord
from shh.validation import normalize_host

logger = logging.getLogger(__name__)

IMPORT_DONE_KEY = "import_done"

SCHEMA = (
    "PRAGMA journal_mode=WAL;",
    """CREATE TABLE IF NOT EXISTS hosts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        host TEXT NOT NULL UNIQUE,
        comment TEXT,
        last_used_at TIMESTAMP NULL,
        use_count INTEGER NOT NULL DEFAULT 0
    );""",
    """CREATE TABLE IF NOT EXISTS meta (
        key TEXT PRIMARY KEY,
        value TEXT
    );""",
)

LIST_SQL = """
SELECT id, host, comment, last_used_at, use_count
FROM hosts
ORDER BY CASE WHEN last_used_at IS NULL THEN 1 ELSE 0 END,
         last_used_at DESC,
         host ASC
"""


class InsertOutcome(enum.Enum):
    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class StoreError(Exception):
    """Raised when the host database cannot be read or written."""


class DuplicateHost(StoreError):
    """Raised when a host is already in the catalog."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _row_to_record(row: sqlite3.Row) -> HostRecord:
    return HostRecord(
        id=row["id"],
        host=row["host"],
        note=row["comment"] or "",
        last_used_at=_parse_timestamp(row["last_used_at"]),
        use_count=row["use_count"],
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class HostStore:
    """Host catalog persisted in a SQLite database file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        try:
            if str(path) != ":memory:":
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(path))
        except (OSError, sqlite3.Error) as exc:
            raise StoreError(f"cannot open database {path}: {exc}") from exc
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        try:
            for stmt in SCHEMA:
                self._conn.execute(stmt)
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot initialise database {self.path}: {exc}") from exc
        logger.debug("schema ready in %s", self.path)

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            with self._conn:
                return self._conn.execute(sql, params)
        except sqlite3.IntegrityError as exc:
            if "UNIQUE constraint failed" in str(exc):
                raise DuplicateHost(f"host {params[0]!r} already exists") from exc
            raise StoreError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    # ---------- lifecycle ----------

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> HostStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ---------- hosts ----------

    def list_hosts(self) -> list[HostRecord]:
        """All hosts, most recently used first, never-used hosts last by name."""
        return [_row_to_record(r) for r in self._query(LIST_SQL)]

    def get_host(self, host: str) -> HostRecord | None:
        rows = self._query(
            "SELECT id, host, comment, last_used_at, use_count FROM hosts WHERE host=?",
            (host,),
        )
        return _row_to_record(rows[0]) if rows else None

    def add_host(self, host: str, note: str = "") -> HostRecord:
        """Validate and insert a host. Raises ``InvalidHost`` or ``DuplicateHost``."""
        norm = normalize_host(host)
        cur = self._execute(
            "INSERT INTO hosts(host, comment) VALUES(?, ?)",
            (norm, note.strip()),
        )
        return HostRecord(id=cur.lastrowid, host=norm, note=note.strip())

    def import_host(self, host: str, note: str) -> InsertOutcome:
        """Insert a host, treating an existing entry as success."""
        try:
            self.add_host(host, note)
        except DuplicateHost:
            return InsertOutcome.ALREADY_EXISTS
        return InsertOutcome.INSERTED

    def update_host(self, host_id: int, host: str, note: str) -> None:
        norm = normalize_host(host)
        cur = self._execute(
            "UPDATE hosts SET host=?, comment=? WHERE id=?",
            (norm, note.strip(), host_id),
        )
        if cur.rowcount == 0:
            raise StoreError(f"no host with id {host_id}")

    def delete_host(self, host_id: int) -> None:
        self._execute("DELETE FROM hosts WHERE id=?", (host_id,))

    def mark_used(self, host_id: int, when: datetime | None = None) -> None:
        """Bump the use counter and stamp the host as used now (UTC)."""
        stamp = (when or _utc_now()).astimezone(timezone.utc).isoformat()
        self._execute(
            "UPDATE hosts SET use_count=use_count+1, last_used_at=? WHERE id=?",
            (stamp, host_id),
        )

    # ---------- meta ----------

    def get_meta(self, key: str) -> str | None:
        rows = self._query("SELECT value FROM meta WHERE key=?", (key,))
        return rows[0]["value"] if rows else None

    def set_meta(self, key: str, value: str) -> None:
        self._execute(
            "INSERT INTO meta(key, value) VALUES(?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )
