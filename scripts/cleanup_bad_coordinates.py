from __future__ import annotations

import argparse
from pathlib import Path

from app.settings import Settings
from store.db import open_database
from store.incidents import delete_invalid_coordinates, find_invalid_coordinates


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Report, and with --confirm delete, incidents with invalid coordinates."
    )
    parser.add_argument("--db", type=Path, default=None)
    parser.add_argument("--confirm", action="store_true")
    args = parser.parse_args()

    settings = Settings()
    db = open_database(args.db or settings.db_path)
    bbox = settings.validation_bbox()
    try:
        bad_count, sample = find_invalid_coordinates(db, bbox)
        print(f"{bad_count} incidents with invalid coordinates")
        for row in sample:
            print(
                f"  {row['source_system']} {row['uuid']} "
                f"[{row['latitude']}, {row['longitude']}] {row['route'] or ''}"
            )
        if bad_count and args.confirm:
            deleted = delete_invalid_coordinates(db, bbox)
            print(f"deleted {deleted} incidents")
        elif bad_count:
            print("re-run with --confirm to delete them")
    finally:
        with db.lock:
            db.conn.close()


if __name__ == "__main__":
    main()
