from __future__ import annotations

from datetime import UTC, datetime

from store.db import Database


def _utc_now_iso() -> str:
    return datetime.now(tz=UTC).isoformat().replace("+00:00", "Z")


def _ensure_source(db: Database, name: str, transformer: str) -> None:
    db.conn.execute(
        """
        INSERT INTO sources(name, transformer)
        VALUES (?, ?)
        ON CONFLICT(name) DO UPDATE SET transformer = excluded.transformer;
        """,
        (name, transformer),
    )


def record_sync_success(
    db: Database,
    *,
    name: str,
    transformer: str,
    fetched_count: int,
    incident_count: int,
) -> None:
    now_iso = _utc_now_iso()
    with db.lock:
        _ensure_source(db, name, transformer)
        db.conn.execute(
            """
            UPDATE sources
            SET last_sync_at = ?,
                last_success_at = ?,
                consecutive_failures = 0,
                last_error = NULL,
                last_error_at = NULL,
                last_fetched_count = ?,
                last_incident_count = ?,
                success_count = success_count + 1
            WHERE name = ?;
            """,
            (now_iso, now_iso, fetched_count, incident_count, name),
        )
        db.conn.commit()


def record_sync_error(
    db: Database,
    *,
    name: str,
    transformer: str,
    error: str,
) -> int:
    """Record a failed sync for one source; returns its consecutive failure count."""
    now_iso = _utc_now_iso()
    with db.lock:
        _ensure_source(db, name, transformer)
        db.conn.execute(
            """
            UPDATE sources
            SET last_sync_at = ?,
                last_error_at = ?,
                consecutive_failures = consecutive_failures + 1,
                last_error = ?,
                error_count = error_count + 1
            WHERE name = ?;
            """,
            (now_iso, now_iso, error, name),
        )
        row = db.conn.execute(
            "SELECT consecutive_failures FROM sources WHERE name = ?;", (name,)
        ).fetchone()
        db.conn.commit()
    return int(row["consecutive_failures"])


def list_source_health(db: Database) -> list[dict]:
    with db.lock:
        rows = db.conn.execute("SELECT * FROM sources ORDER BY name;").fetchall()
    return [dict(r) for r in rows]
