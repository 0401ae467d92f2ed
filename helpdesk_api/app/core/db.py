"""
SQLite document storage and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), cursor helpers for plain and write-locked units
of work, and ``init_db`` which applies migrations on application
start.  Each collection (users, tickets, chats, blogs, reviews) lives
in its own table keyed by an opaque string id.  A chat keeps its whole
message list in a single JSON column so that one row is one document.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List

from .config import settings

logger = logging.getLogger(__name__)


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # helpdesk_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Timestamps are stored as ISO strings and are not converted
    by SQLite.
    """
    conn = sqlite3.connect(get_database_path(), timeout=10)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


@contextmanager
def write_transaction() -> Iterator[sqlite3.Cursor]:
    """Yield a cursor inside an immediate (write-locked) transaction.

    Used for read-modify-write cycles on a single document: the lock is
    taken before the read, so a concurrent writer waits instead of
    overwriting the change.  Rolls back on any exception.
    """
    conn = get_connection()
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn.cursor()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def dump_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def load_json_list(value: str | None) -> List[dict]:
    """Deserialize an embedded JSON array, treating NULL as empty."""
    if not value:
        return []
    return json.loads(value)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally (ESCAPE '\\')."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    the list below.  New migrations must be appended with an
    incremented version number.
    """
    migrations: list[tuple[int, str]] = [
        # Migration 1: initial collections
        (
            1,
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                fullname TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE,
                password TEXT,
                bio TEXT NOT NULL DEFAULT '',
                role TEXT NOT NULL DEFAULT 'customer',
                avatar_url TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);

            CREATE TABLE IF NOT EXISTS tickets (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT NOT NULL,
                priority TEXT NOT NULL,
                user_email TEXT NOT NULL,
                user_name TEXT NOT NULL,
                user_id TEXT NOT NULL,
                assigned_agent_id TEXT,
                assigned_agent_name TEXT NOT NULL DEFAULT '',
                status TEXT NOT NULL DEFAULT 'open',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_tickets_lookup
                ON tickets(status, priority, user_id, assigned_agent_id);

            -- One chat document per ticket; messages are an embedded JSON array.
            CREATE TABLE IF NOT EXISTS chats (
                id TEXT PRIMARY KEY,
                ticket_id TEXT NOT NULL UNIQUE,
                messages TEXT NOT NULL DEFAULT '[]',
                last_updated TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_chats_last_updated ON chats(last_updated);
            """,
        ),
        # Migration 2: content collections
        (
            2,
            """
            CREATE TABLE IF NOT EXISTS blogs (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                excerpt TEXT NOT NULL,
                content TEXT NOT NULL,
                category TEXT NOT NULL,
                tags TEXT NOT NULL DEFAULT '',
                author_name TEXT,
                image_url TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_blogs_category ON blogs(category);

            CREATE TABLE IF NOT EXISTS reviews (
                id TEXT PRIMARY KEY,
                username TEXT NOT NULL,
                ticket_id TEXT,
                description TEXT NOT NULL,
                ticket_title TEXT NOT NULL,
                rating_number REAL NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_reviews_lookup
                ON reviews(username, ticket_title, rating_number);
            CREATE INDEX IF NOT EXISTS idx_reviews_ticket_id ON reviews(ticket_id);
            """,
        ),
    ]

    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in migrations:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                logger.info("Applied database migration %s", version)
                current_version = version
