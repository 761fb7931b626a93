from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from ingest.errors import PersistenceBatchError
from normalize.model import Incident


log = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 150


class IncidentStore(Protocol):
    def upsert_batch(self, batch: Sequence[Incident]) -> None: ...


@dataclass(frozen=True)
class PersistResult:
    committed: int
    batches_committed: int
    total_batches: int
    error: PersistenceBatchError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def chunked(items: Sequence[Incident], size: int) -> list[Sequence[Incident]]:
    if size <= 0:
        raise ValueError("batch size must be positive")
    return [items[i : i + size] for i in range(0, len(items), size)]


async def persist(
    incidents: Sequence[Incident],
    store: IncidentStore,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    logger: logging.Logger = log,
) -> PersistResult:
    """Upsert incidents batch by batch, stopping at the first failed batch.

    Batches already committed stay committed; the result says how many
    incidents made it.
    """
    batches = chunked(incidents, batch_size)
    total = len(batches)
    if total == 0:
        return PersistResult(committed=0, batches_committed=0, total_batches=0)

    logger.info(
        "persisting %d incidents in %d batches of up to %d",
        len(incidents),
        total,
        batch_size,
    )
    committed = 0
    for index, batch in enumerate(batches, start=1):
        logger.debug("persisting batch %d/%d (%d incidents)", index, total, len(batch))
        try:
            await asyncio.to_thread(store.upsert_batch, batch)
        except Exception as e:
            error = PersistenceBatchError(index, total, str(e) or e.__class__.__name__)
            logger.error(
                "batch %d/%d failed after %d incidents committed: %s",
                index,
                total,
                committed,
                error.reason,
            )
            return PersistResult(
                committed=committed,
                batches_committed=index - 1,
                total_batches=total,
                error=error,
            )
        committed += len(batch)

    return PersistResult(committed=committed, batches_committed=total, total_batches=total)
