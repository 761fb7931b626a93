from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from ingest.errors import FetchError
from normalize.model import Incident
from normalize.normalize import NormalizeContext
from normalize.transformers import Transformer


log = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[list[dict]]]
TileFetchFn = Callable[[str], Awaitable[list[dict]]]


@dataclass(frozen=True)
class SourcePlugin:
    name: str
    transformer: Transformer
    fetch: FetchFn


@dataclass(frozen=True)
class SourceReport:
    name: str
    fetched: int = 0
    incidents: int = 0
    error: str | None = None


@dataclass
class SyncOutcome:
    incidents: list[Incident] = field(default_factory=list)
    source_errors: list[str] = field(default_factory=list)
    reports: list[SourceReport] = field(default_factory=list)


async def fetch_tiles(
    source_name: str,
    tiles: Sequence[str],
    fetch_tile: TileFetchFn,
    *,
    concurrency: int = 8,
    logger: logging.Logger = log,
) -> list[dict]:
    """Fetch every tile concurrently and merge the records of those that succeed.

    A failing tile is never fatal. HTTP 400 is what the provider answers for
    tiles without coverage, so those are not worth a warning.
    """
    sem = asyncio.Semaphore(max(1, concurrency))

    async def one(tile: str) -> list[dict]:
        async with sem:
            return await fetch_tile(tile)

    logger.info("[%s] fetching %d tiles", source_name, len(tiles))
    results = await asyncio.gather(*(one(t) for t in tiles), return_exceptions=True)

    merged: list[dict] = []
    succeeded = 0
    for tile, result in zip(tiles, results):
        if isinstance(result, BaseException):
            if isinstance(result, FetchError) and result.status_code == 400:
                logger.debug("[%s] tile %s returned 400", source_name, tile)
            else:
                logger.warning("[%s] error fetching tile %s: %s", source_name, tile, result)
            continue
        succeeded += 1
        merged.extend(result)

    logger.info(
        "[%s] fetched %d of %d tiles, %d records",
        source_name,
        succeeded,
        len(tiles),
        len(merged),
    )
    if succeeded == 0 and tiles:
        logger.warning("[%s] no tile could be fetched; continuing without it", source_name)
    return merged


async def _run_source(plugin: SourcePlugin, ctx: NormalizeContext) -> tuple[int, list[Incident]]:
    records = await plugin.fetch()
    return len(records), plugin.transformer.transform(records, ctx)


async def sync(
    sources: Sequence[SourcePlugin],
    ctx: NormalizeContext | None = None,
    *,
    logger: logging.Logger = log,
) -> SyncOutcome:
    """Fetch and transform every source concurrently.

    Each source is its own failure domain: an exception from one source is
    recorded against it and never cancels its siblings.
    """
    ctx = ctx or NormalizeContext(logger=logger)
    results = await asyncio.gather(
        *(_run_source(s, ctx) for s in sources), return_exceptions=True
    )

    outcome = SyncOutcome()
    for plugin, result in zip(sources, results):
        if isinstance(result, BaseException):
            reason = str(result) or result.__class__.__name__
            logger.warning("[%s] source failed: %s", plugin.name, reason)
            outcome.source_errors.append(f"[{plugin.name}] Failed: {reason}")
            outcome.reports.append(SourceReport(name=plugin.name, error=reason))
            continue
        fetched, incidents = result
        outcome.incidents.extend(incidents)
        outcome.reports.append(
            SourceReport(name=plugin.name, fetched=fetched, incidents=len(incidents))
        )
    return outcome
