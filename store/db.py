from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Database:
    conn: sqlite3.Connection
    lock: threading.Lock


_MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
          version INTEGER NOT NULL PRIMARY KEY
        );

        CREATE TABLE IF NOT EXISTS incidents (
          uuid TEXT NOT NULL PRIMARY KEY,
          source_system TEXT NOT NULL,
          source_event_id TEXT NOT NULL,
          state TEXT NULL,
          county TEXT NULL,
          route TEXT NULL,
          direction TEXT NULL,
          milepost REAL NULL,
          latitude REAL NOT NULL,
          longitude REAL NOT NULL,
          reported_time TEXT NULL,
          updated_time TEXT NOT NULL,
          cleared_time TEXT NULL,
          is_active INTEGER NOT NULL,
          event_type TEXT NULL,
          lanes_affected TEXT NULL,
          closure_status TEXT NOT NULL DEFAULT 'UNKNOWN',
          severity_flag TEXT NOT NULL DEFAULT 'LOW',
          severity_score INTEGER NULL,
          units_involved INTEGER NULL
        );

        CREATE INDEX IF NOT EXISTS incidents_updated_time_idx ON incidents(updated_time);
        CREATE INDEX IF NOT EXISTS incidents_state_idx ON incidents(state);
        CREATE INDEX IF NOT EXISTS incidents_source_system_idx ON incidents(source_system);
        CREATE INDEX IF NOT EXISTS incidents_is_active_idx ON incidents(is_active);
        """,
    ),
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS sources (
          name TEXT NOT NULL PRIMARY KEY,
          transformer TEXT NOT NULL,
          last_sync_at TEXT NULL,
          last_success_at TEXT NULL,
          last_error_at TEXT NULL,
          last_error TEXT NULL,
          consecutive_failures INTEGER NOT NULL DEFAULT 0,
          last_fetched_count INTEGER NULL,
          last_incident_count INTEGER NULL,
          success_count INTEGER NOT NULL DEFAULT 0,
          error_count INTEGER NOT NULL DEFAULT 0
        );
        """,
    ),
]


def open_database(path: Path) -> Database:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    _apply_migrations(conn)
    return Database(conn=conn, lock=threading.Lock())


def _apply_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER NOT NULL PRIMARY KEY);"
    )
    row = conn.execute(
        "SELECT COALESCE(MAX(version), 0) AS v FROM schema_migrations;"
    ).fetchone()
    current_version = int(row["v"])

    for version, sql in _MIGRATIONS:
        if version <= current_version:
            continue
        conn.executescript(sql)
        conn.execute("INSERT INTO schema_migrations(version) VALUES (?);", (version,))
        conn.commit()
