from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from app.settings import Settings
from geo.coords import CoordinateValidator
from health.health import record_sync_error, record_sync_success
from ingest.sources import configured_sources
from ingest.sync import SourcePlugin, SyncOutcome, sync
from normalize.normalize import NormalizeContext
from store.db import Database
from store.incidents import SqliteIncidentStore
from store.persist import DEFAULT_BATCH_SIZE, IncidentStore, PersistResult, persist


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    success: bool
    message: str


def _persist_message(result: PersistResult) -> str:
    if result.error is None:
        return (
            f"Sync complete. Successfully processed {result.committed} incidents "
            f"across {result.total_batches} batches."
        )
    return (
        f"Sync failed on batch {result.error.batch_index}/{result.total_batches} "
        f"after committing {result.committed} incidents. Reason: {result.error.reason}"
    )


def summarize(outcome: SyncOutcome, persisted: PersistResult | None) -> SyncResult:
    """Fold fetch errors and the persist result into one caller-facing result."""
    if outcome.source_errors:
        errors = "; ".join(outcome.source_errors)
        if persisted is not None and persisted.success:
            return SyncResult(
                success=True,
                message=f"Partial Sync: {_persist_message(persisted).rstrip('.')}. "
                f"Fetch Errors: {errors}",
            )
        importer_error = (
            f" | Importer error: {_persist_message(persisted)}"
            if persisted is not None
            else ""
        )
        return SyncResult(
            success=False, message=f"Sync failed. Fetch Errors: {errors}{importer_error}"
        )

    if persisted is not None:
        return SyncResult(success=persisted.success, message=_persist_message(persisted))
    return SyncResult(
        success=True, message="Sync complete. No new incidents found from any source."
    )


async def sync_and_persist(
    sources: Sequence[SourcePlugin],
    store: IncidentStore,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    ctx: NormalizeContext | None = None,
    logger: logging.Logger = log,
) -> tuple[SyncOutcome, SyncResult]:
    outcome = await sync(sources, ctx, logger=logger)
    persisted = None
    if outcome.incidents:
        persisted = await persist(
            outcome.incidents, store, batch_size=batch_size, logger=logger
        )
    result = summarize(outcome, persisted)
    log_fn = logger.info if result.success else logger.warning
    log_fn("%s", result.message)
    return outcome, result


def _record_health(
    db: Database, sources: Sequence[SourcePlugin], outcome: SyncOutcome
) -> None:
    kinds = {s.name: s.transformer.kind for s in sources}
    for report in outcome.reports:
        if report.error is None:
            record_sync_success(
                db,
                name=report.name,
                transformer=kinds[report.name],
                fetched_count=report.fetched,
                incident_count=report.incidents,
            )
        else:
            record_sync_error(
                db, name=report.name, transformer=kinds[report.name], error=report.error
            )


async def run_sync(
    *,
    settings: Settings,
    db: Database,
    client: httpx.AsyncClient,
    sources: Sequence[SourcePlugin] | None = None,
) -> SyncResult:
    if sources is None:
        sources = configured_sources(settings, client)
    ctx = NormalizeContext(
        validator=CoordinateValidator(settings.validation_bbox()),
        namespace=uuid.UUID(settings.uuid_namespace),
    )
    outcome, result = await sync_and_persist(
        sources,
        SqliteIncidentStore(db),
        batch_size=settings.batch_size,
        ctx=ctx,
    )
    _record_health(db, sources, outcome)
    return result


async def run_scheduler(
    *,
    settings: Settings,
    db: Database,
    client: httpx.AsyncClient,
    lock: asyncio.Lock | None = None,
    logger: logging.Logger = log,
) -> None:
    interval = settings.sync_interval_seconds
    lock = lock or asyncio.Lock()
    logger.info("scheduler started, syncing every %ds", interval)
    while True:
        async with lock:
            try:
                await run_sync(settings=settings, db=db, client=client)
            except Exception:
                logger.exception("scheduled sync failed; retrying in %ds", interval)
        await asyncio.sleep(interval)
