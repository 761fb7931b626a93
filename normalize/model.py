from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Literal


ClosureStatus = Literal["OPEN", "CLOSED", "PARTIAL", "UNKNOWN"]
SeverityFlag = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]

DEFAULT_CLOSURE: ClosureStatus = "UNKNOWN"
DEFAULT_SEVERITY: SeverityFlag = "LOW"

# Columns an upsert may overwrite on an existing row.
MUTABLE_FIELDS: tuple[str, ...] = (
    "updated_time",
    "cleared_time",
    "is_active",
    "event_type",
    "lanes_affected",
    "closure_status",
    "severity_flag",
    "severity_score",
    "units_involved",
)


@dataclass(frozen=True)
class Incident:
    uuid: str
    source_system: str
    source_event_id: str
    state: str | None
    county: str | None
    route: str | None
    direction: str | None
    milepost: float | None
    latitude: float
    longitude: float
    reported_time: str | None
    updated_time: str
    cleared_time: str | None
    is_active: bool
    event_type: str | None
    lanes_affected: str | None
    closure_status: ClosureStatus
    severity_flag: SeverityFlag
    severity_score: int | None
    units_involved: int | None

    def to_row(self) -> dict:
        row = asdict(self)
        row["is_active"] = 1 if self.is_active else 0
        return row


INCIDENT_COLUMNS: tuple[str, ...] = tuple(Incident.__dataclass_fields__)
