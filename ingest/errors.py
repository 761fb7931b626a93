"""Ingest exception hierarchy.

Fetch and parse errors are per-source and isolated by the orchestrator.
``ValidationDrop`` never leaves a transformer. ``PersistenceBatchError``
stops the remaining batches of one sync run.
"""

from __future__ import annotations


_SNIPPET_CHARS = 150


class IngestError(Exception):
    """Base exception for all ingest failures."""


class FetchError(IngestError):
    """Raised when a source responds with a non-success status or is unreachable."""

    def __init__(
        self,
        source_name: str,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.source_name = source_name
        self.status_code = status_code
        self.body = body


class ParseError(IngestError):
    """Raised when a source payload is not decodable JSON."""

    def __init__(self, source_name: str, body: str) -> None:
        self.source_name = source_name
        self.snippet = body[:_SNIPPET_CHARS]
        super().__init__(
            "Failed to parse JSON. The server returned an unexpected format "
            f"(likely XML or HTML). Response snippet: {self.snippet}..."
        )


class ValidationDrop(IngestError):
    """Raised inside a transformer for a record that cannot be mapped."""

    def __init__(self, reason: str, *, record_id: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.record_id = record_id


class PersistenceBatchError(IngestError):
    """Raised when committing one batch of incidents fails."""

    def __init__(self, batch_index: int, total_batches: int, reason: str) -> None:
        super().__init__(f"batch {batch_index}/{total_batches}: {reason}")
        self.batch_index = batch_index
        self.total_batches = total_batches
        self.reason = reason
