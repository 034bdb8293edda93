"""SQLite database layer for rate-limit windows.

Leads are not persisted here; that is the caller's job.
"""

import sqlite3
from datetime import date, timedelta
from pathlib import Path

_RATE_LIMITS_TABLE = """
CREATE TABLE IF NOT EXISTS rate_limits (
    caller_key    TEXT    NOT NULL,
    window_start  TEXT    NOT NULL,
    request_count INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (caller_key, window_start)
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_RATE_LIMITS_TABLE)
    conn.commit()
    return conn


def increment_window_if_below(
    conn: sqlite3.Connection,
    caller_key: str,
    window_start: date,
    limit: int,
) -> int | None:
    """Atomically bump the window counter if it is below ``limit``.

    Creates the row with count 1 on first use. Returns the new count, or None
    when the window is already at the limit (the row is left unchanged).
    A single conditional upsert, so two connections can never both pass the
    check at the boundary.
    """
    if not conn.in_transaction:
        conn.execute("BEGIN IMMEDIATE")
    try:
        cursor = conn.execute(
            """
            INSERT INTO rate_limits (caller_key, window_start, request_count)
            VALUES (?, ?, 1)
            ON CONFLICT(caller_key, window_start)
            DO UPDATE SET request_count = request_count + 1
            WHERE request_count < ?
            RETURNING request_count
            """,
            (caller_key, window_start.isoformat(), limit),
        )
        rows = cursor.fetchall()
    except sqlite3.Error:
        conn.rollback()
        raise
    conn.commit()
    if not rows:
        return None
    return int(rows[0]["request_count"])


def get_window_count(
    conn: sqlite3.Connection,
    caller_key: str,
    window_start: date,
) -> int:
    """Return the request count for a window, 0 when no row exists."""
    row = conn.execute(
        "SELECT request_count FROM rate_limits WHERE caller_key = ? AND window_start = ?",
        (caller_key, window_start.isoformat()),
    ).fetchone()
    if row is None:
        return 0
    return int(row["request_count"])


def prune_rate_limit_windows(
    conn: sqlite3.Connection,
    older_than_days: int,
    today: date | None = None,
) -> int:
    """Delete windows that started more than ``older_than_days`` ago. Returns rows removed."""
    cutoff = (today or date.today()) - timedelta(days=older_than_days)
    cursor = conn.execute(
        "DELETE FROM rate_limits WHERE window_start < ?",
        (cutoff.isoformat(),),
    )
    conn.commit()
    return cursor.rowcount
