from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import httpx

from app.logs import configure_logging
from app.settings import Settings
from ingest.scheduler import run_sync
from store.db import open_database


async def _run(settings: Settings) -> bool:
    db = open_database(settings.db_path)
    try:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            result = await run_sync(settings=settings, db=db, client=client)
    finally:
        with db.lock:
            db.conn.close()
    print(result.message)
    return result.success


def main() -> None:
    parser = argparse.ArgumentParser(description="Run one incident sync cycle.")
    parser.add_argument("--db", type=Path, default=None)
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    settings = Settings()
    if args.db is not None:
        settings.db_path = args.db
    if args.batch_size is not None:
        settings.batch_size = args.batch_size
    configure_logging(args.log_level or settings.log_level)

    ok = asyncio.run(_run(settings))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
