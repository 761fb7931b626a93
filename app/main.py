from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from app.logs import configure_logging
from app.settings import Settings
from health.health import list_source_health
from ingest.scheduler import run_scheduler, run_sync
from store.db import Database, open_database
from store.incidents import count_incidents, list_incidents


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()
    configure_logging(settings.log_level)
    db = open_database(settings.db_path)
    client = httpx.AsyncClient(follow_redirects=True)
    app.state.settings = settings
    app.state.db = db
    app.state.client = client
    sync_lock = asyncio.Lock()
    app.state.sync_lock = sync_lock

    scheduler_task = None
    if settings.sync_interval_seconds > 0:
        scheduler_task = asyncio.create_task(
            run_scheduler(settings=settings, db=db, client=client, lock=sync_lock)
        )
    try:
        yield
    finally:
        try:
            if scheduler_task is not None:
                scheduler_task.cancel()
                with suppress(asyncio.CancelledError):
                    await scheduler_task
        finally:
            await client.aclose()
            with db.lock:
                db.conn.close()


app = FastAPI(lifespan=lifespan)


@app.get("/healthz")
def healthz(request: Request) -> JSONResponse:
    db: Database = request.app.state.db
    return JSONResponse({"ok": True, "incidents": count_incidents(db)})


@app.get("/api/incidents")
def api_incidents(
    request: Request,
    active: bool | None = None,
    state: str | None = Query(default=None, pattern="^[A-Za-z]{2}$"),
    source: str | None = None,
    limit: int = Query(default=500, ge=1, le=5000),
) -> JSONResponse:
    db: Database = request.app.state.db
    incidents = list_incidents(
        db, active=active, state=state, source_system=source, limit=limit
    )
    for incident in incidents:
        incident["is_active"] = bool(incident["is_active"])
    return JSONResponse(incidents)


@app.get("/api/sources")
def api_sources(request: Request) -> JSONResponse:
    db: Database = request.app.state.db
    return JSONResponse(list_source_health(db))


@app.post("/api/sync")
async def api_sync(request: Request) -> JSONResponse:
    lock: asyncio.Lock = request.app.state.sync_lock
    if lock.locked():
        return JSONResponse(
            {"success": False, "message": "A sync is already running."},
            status_code=409,
        )
    async with lock:
        result = await run_sync(
            settings=request.app.state.settings,
            db=request.app.state.db,
            client=request.app.state.client,
        )
    return JSONResponse(
        {"success": result.success, "message": result.message},
        status_code=200 if result.success else 502,
    )
