"""Database connection management and schema initialization."""

import sqlite3
from pathlib import Path

from config import DEFAULT_DB_PATH

SCHEMA_SQL = """
-- Guest practice history, newest first by seq.
-- The snapshot column holds the full SessionSnapshot as JSON; status and
-- timestamps are duplicated for filtering.
CREATE TABLE IF NOT EXISTS guest_sessions (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    status TEXT NOT NULL CHECK (status IN ('in_progress', 'completed')),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    snapshot TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_guest_sessions_status ON guest_sessions(status);
"""


# Answers are written from worker threads; wait for the write lock.
BUSY_TIMEOUT_SECONDS = 10.0


def get_connection(db_path: Path = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Open a connection to the guest history database.

    Rows come back as sqlite3.Row so columns can be read by name. Each
    call opens its own connection, which is safe to use from the thread
    that opened it.
    """
    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    return conn


def init_schema(db_path: Path = DEFAULT_DB_PATH) -> None:
    """Create the guest_sessions table (and its directory) if missing."""
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        with conn:
            conn.executescript(SCHEMA_SQL)
    finally:
        conn.close()
