from __future__ import annotations

import sqlite3
from collections.abc import Sequence

from geo.coords import BoundingBox
from normalize.model import INCIDENT_COLUMNS, MUTABLE_FIELDS, Incident
from store.db import Database


_UPSERT_SQL = (
    f"INSERT INTO incidents({', '.join(INCIDENT_COLUMNS)})\n"
    f"VALUES({', '.join(':' + c for c in INCIDENT_COLUMNS)})\n"
    "ON CONFLICT(uuid) DO UPDATE SET\n  "
    + ",\n  ".join(f"{c} = excluded.{c}" for c in MUTABLE_FIELDS)
    + ";"
)


class SqliteIncidentStore:
    """Incident writes for the batch persister; one transaction per batch."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def upsert_batch(self, batch: Sequence[Incident]) -> None:
        upsert_incidents(self._db, batch)


def upsert_incidents(db: Database, incidents: Sequence[Incident]) -> None:
    rows = [i.to_row() for i in incidents]
    with db.lock:
        try:
            db.conn.executemany(_UPSERT_SQL, rows)
        except sqlite3.Error:
            db.conn.rollback()
            raise
        db.conn.commit()


def list_incidents(
    db: Database,
    *,
    active: bool | None = None,
    state: str | None = None,
    source_system: str | None = None,
    limit: int = 500,
) -> list[dict]:
    clauses: list[str] = []
    params: list[object] = []
    if active is not None:
        clauses.append("is_active = ?")
        params.append(1 if active else 0)
    if state:
        clauses.append("state = ?")
        params.append(state.upper())
    if source_system:
        clauses.append("source_system = ?")
        params.append(source_system)

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    params.append(limit)
    with db.lock:
        rows = db.conn.execute(
            f"""
            SELECT *
            FROM incidents
            {where}
            ORDER BY updated_time DESC
            LIMIT ?;
            """,
            params,
        ).fetchall()
    return [dict(r) for r in rows]


def count_incidents(db: Database) -> int:
    with db.lock:
        row = db.conn.execute("SELECT COUNT(*) AS n FROM incidents;").fetchone()
    return int(row["n"])


def _invalid_coordinates_where(bbox: BoundingBox) -> tuple[str, list[float]]:
    return (
        """
        (ABS(latitude - 1.0) < 0.0001 AND ABS(longitude - 1.0) < 0.0001)
        OR (latitude = 0 AND longitude = 0)
        OR latitude IS NULL
        OR longitude IS NULL
        OR latitude < ? OR latitude > ?
        OR longitude < ? OR longitude > ?
        """,
        [bbox.min_lat, bbox.max_lat, bbox.min_lon, bbox.max_lon],
    )


def find_invalid_coordinates(
    db: Database, bbox: BoundingBox, *, limit: int = 10
) -> tuple[int, list[dict]]:
    """Count rows whose coordinates the validator would reject, plus a sample."""
    where, params = _invalid_coordinates_where(bbox)
    with db.lock:
        row = db.conn.execute(
            f"SELECT COUNT(*) AS n FROM incidents WHERE {where};", params
        ).fetchone()
        sample = db.conn.execute(
            f"""
            SELECT uuid, source_system, latitude, longitude, route, event_type, updated_time
            FROM incidents
            WHERE {where}
            LIMIT ?;
            """,
            [*params, limit],
        ).fetchall()
    return int(row["n"]), [dict(r) for r in sample]


def delete_invalid_coordinates(db: Database, bbox: BoundingBox) -> int:
    where, params = _invalid_coordinates_where(bbox)
    with db.lock:
        cur = db.conn.execute(f"DELETE FROM incidents WHERE {where};", params)
        db.conn.commit()
    return cur.rowcount
