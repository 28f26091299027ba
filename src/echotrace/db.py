"""SQLite persistence for aggregated browsing stats."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from .categories import categorize
from .models import StatsSnapshot

logger = logging.getLogger(__name__)


DAY_FMT = "%Y-%m-%d"

_ENABLED_KEY = "enabled"


class EchoTraceError(Exception):
    """Base class for errors raised by EchoTrace."""


class StorageError(EchoTraceError):
    """The durable store rejected a read or write."""


def open_database(
    path: Path, *, check_same_thread: bool = True, initialize: bool = True
) -> sqlite3.Connection:
    """Open (and optionally initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
        timeout=30,
    )
    conn.row_factory = sqlite3.Row
    if initialize:
        initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True, initialize: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread, initialize=initialize)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection, *, write: bool = False) -> Iterator[sqlite3.Connection]:
    """Run a block inside one SQLite transaction on an autocommit connection."""
    conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS daily_stats (
            day TEXT NOT NULL,
            category TEXT NOT NULL,
            seconds INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (day, category)
        );

        CREATE TABLE IF NOT EXISTS domain_totals (
            domain TEXT PRIMARY KEY,
            seconds INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS category_totals (
            category TEXT PRIMARY KEY,
            seconds INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        INSERT OR IGNORE INTO settings (key, value) VALUES ('enabled', '0');
        """
    )


def add_seconds(
    conn: sqlite3.Connection, day: str, domain: str, category: str, seconds: int
) -> None:
    conn.execute(
        """
        INSERT INTO daily_stats (day, category, seconds) VALUES (?, ?, ?)
        ON CONFLICT(day, category) DO UPDATE SET seconds = seconds + excluded.seconds
        """,
        (day, category, seconds),
    )
    conn.execute(
        """
        INSERT INTO domain_totals (domain, seconds) VALUES (?, ?)
        ON CONFLICT(domain) DO UPDATE SET seconds = seconds + excluded.seconds
        """,
        (domain, seconds),
    )
    conn.execute(
        """
        INSERT INTO category_totals (category, seconds) VALUES (?, ?)
        ON CONFLICT(category) DO UPDATE SET seconds = seconds + excluded.seconds
        """,
        (category, seconds),
    )


def clear_totals(conn: sqlite3.Connection) -> None:
    conn.execute("DELETE FROM daily_stats")
    conn.execute("DELETE FROM domain_totals")
    conn.execute("DELETE FROM category_totals")


def fetch_enabled(conn: sqlite3.Connection) -> bool:
    row = conn.execute(
        "SELECT value FROM settings WHERE key = ?", (_ENABLED_KEY,)
    ).fetchone()
    return row is not None and row["value"] == "1"


def store_enabled(conn: sqlite3.Connection, enabled: bool) -> None:
    conn.execute(
        """
        INSERT INTO settings (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """,
        (_ENABLED_KEY, "1" if enabled else "0"),
    )


def fetch_snapshot(conn: sqlite3.Connection) -> StatsSnapshot:
    """Build a snapshot; rows come back in first-insertion order."""
    daily: dict[str, dict[str, int]] = {}
    for row in conn.execute(
        "SELECT day, category, seconds FROM daily_stats ORDER BY rowid"
    ):
        daily.setdefault(row["day"], {})[row["category"]] = row["seconds"]
    by_domain = {
        row["domain"]: row["seconds"]
        for row in conn.execute("SELECT domain, seconds FROM domain_totals ORDER BY rowid")
    }
    by_category = {
        row["category"]: row["seconds"]
        for row in conn.execute(
            "SELECT category, seconds FROM category_totals ORDER BY rowid"
        )
    }
    return StatsSnapshot(
        daily_stats=daily,
        total_by_domain=by_domain,
        total_by_category=by_category,
        enabled=fetch_enabled(conn),
    )


class StatsStore:
    """Transactional access to the persisted stats document."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create {self.db_path.parent}: {exc}") from exc
        with self._connection(initialize=True):
            pass

    @contextmanager
    def _connection(self, *, initialize: bool = False) -> Iterator[sqlite3.Connection]:
        try:
            with database_connection(
                self.db_path, check_same_thread=False, initialize=initialize
            ) as conn:
                yield conn
        except sqlite3.Error as exc:
            raise StorageError(f"Stats store at {self.db_path} is unavailable: {exc}") from exc

    def accumulate(self, domain: str, seconds: int, when: datetime) -> None:
        """Add ``seconds`` for ``domain`` to the day of ``when`` and the all-time totals."""
        if seconds <= 0:
            return
        day = when.strftime(DAY_FMT)
        category = categorize(domain)
        with self._lock, self._connection() as conn:
            with transaction(conn, write=True):
                add_seconds(conn, day, domain, category, seconds)
        logger.debug("Added %ds to %s (%s) for %s", seconds, domain, category, day)

    def reset(self) -> None:
        with self._lock, self._connection() as conn:
            with transaction(conn, write=True):
                clear_totals(conn)
        logger.info("Stats reset.")

    def query(self) -> StatsSnapshot:
        with self._connection() as conn:
            with transaction(conn):
                return fetch_snapshot(conn)

    def is_enabled(self) -> bool:
        with self._connection() as conn:
            return fetch_enabled(conn)

    def set_enabled(self, enabled: bool) -> None:
        with self._lock, self._connection() as conn:
            store_enabled(conn, enabled)
