from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import MappingProxyType

from ingest.errors import ValidationDrop
from normalize import normalize as n
from normalize.model import Incident


RecordIdFn = Callable[[dict], str | None]
NormalizeFn = Callable[..., Incident]


def dedupe_records(
    records: Iterable[object], record_id: RecordIdFn
) -> tuple[dict[str, dict], int]:
    """Collapse records on their native id; the last occurrence wins.

    Returns the unique records keyed by id and the number of records that
    had no usable id.
    """
    unique: dict[str, dict] = {}
    missing = 0
    for record in records:
        if not isinstance(record, dict):
            missing += 1
            continue
        rid = record_id(record)
        if rid is None:
            missing += 1
            continue
        unique[rid] = record
    return unique, missing


@dataclass(frozen=True)
class Transformer:
    kind: str
    record_id: RecordIdFn
    normalize: NormalizeFn

    def transform(
        self, records: Iterable[object], ctx: n.NormalizeContext | None = None
    ) -> list[Incident]:
        """Map raw records to incidents. Unmappable records are dropped, never raised."""
        ctx = ctx or n.NormalizeContext()
        logger = ctx.logger

        unique, missing = dedupe_records(records, self.record_id)
        if missing:
            logger.debug("[%s] dropped %d records without an id", self.kind, missing)

        incidents: list[Incident] = []
        dropped = missing
        for event_id, record in unique.items():
            try:
                incidents.append(self.normalize(record=record, event_id=event_id, ctx=ctx))
            except ValidationDrop as e:
                dropped += 1
                logger.debug("[%s] skipping %s: %s", self.kind, event_id, e.reason)
            except Exception as e:
                dropped += 1
                logger.warning(
                    "[%s] failed to transform %s: %s: %s",
                    self.kind,
                    event_id,
                    e.__class__.__name__,
                    e,
                )

        logger.info(
            "[%s] transformed %d incidents (%d dropped)",
            self.kind,
            len(incidents),
            dropped,
        )
        return incidents


TRANSFORMERS: MappingProxyType[str, Transformer] = MappingProxyType(
    {
        t.kind: t
        for t in (
            Transformer(
                kind="tomtom",
                record_id=n.tomtom_record_id,
                normalize=n.normalize_tomtom_incident,
            ),
            Transformer(
                kind="ohgo",
                record_id=n.ohgo_record_id,
                normalize=n.normalize_ohgo_incident,
            ),
            Transformer(
                kind="ohgo_construction",
                record_id=n.ohgo_construction_record_id,
                normalize=n.normalize_ohgo_construction,
            ),
            Transformer(
                kind="drivetexas",
                record_id=n.drivetexas_record_id,
                normalize=n.normalize_drivetexas_condition,
            ),
            Transformer(
                kind="drivetexas_itravel",
                record_id=n.itravel_record_id,
                normalize=n.normalize_itravel_incident,
            ),
        )
    }
)


def get_transformer(kind: str) -> Transformer:
    try:
        return TRANSFORMERS[kind]
    except KeyError:
        raise ValueError(f"unknown transformer: {kind}") from None
