from __future__ import annotations

import uuid


DEFAULT_NAMESPACE = uuid.UUID("a3a6b0c2-3e28-4a95-87d8-2a22f3e5b4f2")


def assign_id(
    source_system: str,
    source_event_id: str,
    namespace: uuid.UUID = DEFAULT_NAMESPACE,
) -> str:
    """Deterministic UUIDv5 for one source record.

    The same ``(source_system, source_event_id)`` maps to the same id in
    every process, which is what keeps re-ingestion an upsert.
    """
    return str(uuid.uuid5(namespace, f"{source_system}-{source_event_id}"))
