from __future__ import annotations

import logging
import math
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

from geo.coords import DEFAULT_VALIDATOR, CoordinateValidator
from geo.geometry import extract_point
from ingest.errors import ValidationDrop
from normalize.identity import DEFAULT_NAMESPACE, assign_id
from normalize.model import (
    DEFAULT_CLOSURE,
    DEFAULT_SEVERITY,
    ClosureStatus,
    Incident,
    SeverityFlag,
)
from normalize.timefmt import is_active_at, now_wire_time, to_wire_time


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizeContext:
    validator: CoordinateValidator = DEFAULT_VALIDATOR
    namespace: uuid.UUID = DEFAULT_NAMESPACE
    fetched_at: str = field(default_factory=now_wire_time)
    now: datetime | None = None
    logger: logging.Logger = log


def _text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _int(value: object) -> int | None:
    number = _float(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _point_or_drop(
    lat: object, lon: object, ctx: NormalizeContext, event_id: str
) -> tuple[float, float]:
    # Feeds sometimes send coordinates as numeric strings.
    lat, lon = _float(lat), _float(lon)
    if not ctx.validator.is_valid(lat, lon):
        raise ValidationDrop(f"invalid coordinates [{lon}, {lat}]", record_id=event_id)
    return (lat, lon)


def _geometry_or_drop(
    geometry: object, ctx: NormalizeContext, event_id: str
) -> tuple[float, float]:
    point = extract_point(geometry, ctx.validator, logger=ctx.logger)
    if point is None:
        raise ValidationDrop("no valid coordinates", record_id=event_id)
    lon, lat = point
    return (lat, lon)


# --- TomTom ----------------------------------------------------------------

TOMTOM_EVENT_TYPES = MappingProxyType(
    {
        1: "Accident",
        3: "Dangerous Conditions",
        6: "Traffic Jam",
        7: "Lane Closure",
        8: "Road Closed",
        9: "Road Works",
        14: "Broken Down Vehicle",
    }
)

TOMTOM_CLOSURES: MappingProxyType[int, ClosureStatus] = MappingProxyType(
    {7: "PARTIAL", 8: "CLOSED"}
)

TOMTOM_SEVERITIES: MappingProxyType[int, SeverityFlag] = MappingProxyType(
    {0: "LOW", 1: "LOW", 2: "MEDIUM", 3: "HIGH", 4: "CRITICAL"}
)

_STATE_ROUTE_RE = re.compile(r"\b([A-Z]{2})-\d+\b")


def state_from_routes(road_numbers: object) -> str | None:
    if not isinstance(road_numbers, list):
        return None
    for route in road_numbers:
        match = _STATE_ROUTE_RE.search(str(route))
        if match is not None:
            return match.group(1)
    return None


def tomtom_record_id(record: dict) -> str | None:
    props = record.get("properties")
    if not isinstance(props, dict):
        return None
    return _text(props.get("id"))


def normalize_tomtom_incident(
    *, record: dict, event_id: str, ctx: NormalizeContext
) -> Incident:
    props = record["properties"]
    lat, lon = _geometry_or_drop(record.get("geometry"), ctx, event_id)

    road_numbers = props.get("roadNumbers") or []
    icon_category = props.get("iconCategory")
    aci = props.get("aci") if isinstance(props.get("aci"), dict) else {}
    delay = _float(props.get("delay"))
    started = to_wire_time(props.get("startTime"))

    return Incident(
        uuid=assign_id("TomTom_USA", event_id, ctx.namespace),
        source_system="TomTom_USA",
        source_event_id=event_id,
        state=state_from_routes(road_numbers),
        county=None,
        route=_text(road_numbers[0] if road_numbers else None)
        or _text(props.get("from"))
        or "Unknown Route",
        direction=None,
        milepost=None,
        latitude=lat,
        longitude=lon,
        reported_time=started,
        updated_time=started or ctx.fetched_at,
        cleared_time=to_wire_time(props.get("endTime")),
        is_active=is_active_at(props.get("endTime"), ctx.now),
        event_type=TOMTOM_EVENT_TYPES.get(icon_category, "Unknown Event"),
        lanes_affected=_text(aci.get("description"))
        or f"From {props.get('from')} to {props.get('to')}",
        closure_status=TOMTOM_CLOSURES.get(icon_category, DEFAULT_CLOSURE),
        severity_flag=TOMTOM_SEVERITIES.get(
            props.get("magnitudeOfDelay"), DEFAULT_SEVERITY
        ),
        severity_score=math.floor(delay / 60 + 0.5) if delay else None,
        units_involved=None,
    )


# --- OHGO (authenticated incidents API) ---------------------------------------

OHGO_SEVERITIES: MappingProxyType[str, SeverityFlag] = MappingProxyType(
    {
        "LOW": "LOW",
        "MINOR": "LOW",
        "MODERATE": "MEDIUM",
        "MAJOR": "HIGH",
        "CRITICAL": "CRITICAL",
    }
)


def _ohgo_closure(roadway_status: object) -> ClosureStatus:
    status = (_text(roadway_status) or "").upper()
    if "CLOSED" in status:
        return "CLOSED"
    if "PARTIAL" in status:
        return "PARTIAL"
    if "OPEN" in status:
        return "OPEN"
    return DEFAULT_CLOSURE


def ohgo_record_id(record: dict) -> str | None:
    return _text(record.get("id"))


def normalize_ohgo_incident(
    *, record: dict, event_id: str, ctx: NormalizeContext
) -> Incident:
    location = record.get("location") if isinstance(record.get("location"), dict) else {}
    lat, lon = _point_or_drop(
        location.get("latitude", record.get("latitude")),
        location.get("longitude", record.get("longitude")),
        ctx,
        event_id,
    )
    cleared = record.get("clearedTime") or None
    severity = (_text(record.get("severity")) or "").upper()

    return Incident(
        uuid=assign_id("OHGO_Official", event_id, ctx.namespace),
        source_system="OHGO_Official",
        source_event_id=event_id,
        state="OH",
        county=_text(record.get("county")),
        route=_text(record.get("roadwayName")) or "Unknown Route",
        direction=_text(record.get("direction")),
        milepost=_float(record.get("mileMarker")),
        latitude=lat,
        longitude=lon,
        reported_time=to_wire_time(record.get("startTime")),
        updated_time=to_wire_time(record.get("lastUpdatedTime") or record.get("startTime"))
        or ctx.fetched_at,
        cleared_time=to_wire_time(cleared),
        is_active=is_active_at(cleared, ctx.now),
        event_type=_text(record.get("eventType")) or "Unknown Event",
        lanes_affected=_text(record.get("description")),
        closure_status=_ohgo_closure(record.get("roadwayStatus")),
        severity_flag=OHGO_SEVERITIES.get(severity, DEFAULT_SEVERITY),
        severity_score=None,
        units_involved=None,
    )


# --- OHGO construction (public results envelope) ----------------------------


def ohgo_construction_record_id(record: dict) -> str | None:
    return _text(record.get("eventId"))


def normalize_ohgo_construction(
    *, record: dict, event_id: str, ctx: NormalizeContext
) -> Incident:
    lat, lon = _point_or_drop(record.get("latitude"), record.get("longitude"), ctx, event_id)

    updated = to_wire_time(record.get("lastUpdated")) or ctx.fetched_at
    cleared = to_wire_time(record.get("endTime"))
    flagged_active = bool(record.get("active", True))
    if not flagged_active and cleared is None:
        cleared = updated

    return Incident(
        uuid=assign_id("OHGO_Construction", event_id, ctx.namespace),
        source_system="OHGO_Construction",
        source_event_id=event_id,
        state="OH",
        county=_text(record.get("county")),
        route=_text(record.get("routeName")),
        direction=_text(record.get("direction")),
        milepost=_float(record.get("startMileMarker")),
        latitude=lat,
        longitude=lon,
        reported_time=to_wire_time(record.get("startTime")),
        updated_time=updated,
        cleared_time=cleared,
        is_active=flagged_active and is_active_at(cleared, ctx.now),
        event_type=_text(record.get("eventType")) or "Unknown",
        lanes_affected=_text(record.get("lanesAffected")),
        closure_status=DEFAULT_CLOSURE,
        severity_flag="MEDIUM",
        severity_score=50,
        units_involved=None,
    )


# --- DriveTexas (GeoJSON conditions feed) ------------------------------------


def _drivetexas_closure(description: object) -> ClosureStatus:
    text = (_text(description) or "").lower()
    if "closed" in text:
        return "CLOSED"
    if "lane blocked" in text or "shoulder blocked" in text:
        return "PARTIAL"
    return DEFAULT_CLOSURE


def drivetexas_record_id(record: dict) -> str | None:
    props = record.get("properties")
    if not isinstance(props, dict):
        return None
    return _text(props.get("GLOBALID") or props.get("Identifier"))


def normalize_drivetexas_condition(
    *, record: dict, event_id: str, ctx: NormalizeContext
) -> Incident:
    props = record["properties"]
    lat, lon = _geometry_or_drop(record.get("geometry"), ctx, event_id)
    county = props.get("county_num")

    return Incident(
        uuid=assign_id("DriveTexas_Official", event_id, ctx.namespace),
        source_system="DriveTexas_Official",
        source_event_id=event_id,
        state="TX",
        county=str(county) if county else None,
        route=_text(props.get("route_name")) or "Unknown Route",
        direction=_text(props.get("travel_direction")),
        milepost=_float(props.get("from_ref_marker")),
        latitude=lat,
        longitude=lon,
        reported_time=to_wire_time(props.get("start_time")),
        updated_time=to_wire_time(props.get("create_time") or props.get("start_time"))
        or ctx.fetched_at,
        cleared_time=to_wire_time(props.get("end_time")),
        is_active=is_active_at(props.get("end_time"), ctx.now),
        event_type=_text(props.get("condition")) or "Unknown",
        lanes_affected=_text(props.get("description")),
        closure_status=_drivetexas_closure(props.get("description")),
        severity_flag="MEDIUM" if str(props.get("delay_flag")) == "true" else "LOW",
        severity_score=None,
        units_involved=None,
    )


# --- DriveTexas iTravel (bare array) -----------------------------------------

ITRAVEL_SEVERITIES: MappingProxyType[int, SeverityFlag] = MappingProxyType(
    {1: "LOW", 2: "MEDIUM", 3: "HIGH", 4: "CRITICAL"}
)
ITRAVEL_SEVERITY_SCORES = MappingProxyType({1: 25, 2: 50, 3: 75, 4: 95})


def itravel_record_id(record: dict) -> str | None:
    return _text(record.get("Id"))


def normalize_itravel_incident(
    *, record: dict, event_id: str, ctx: NormalizeContext
) -> Incident:
    lat, lon = _point_or_drop(record.get("Latitude"), record.get("Longitude"), ctx, event_id)

    flagged_active = bool(record.get("IsActive", True))
    updated = to_wire_time(record.get("LastUpdated")) or ctx.fetched_at
    severity = _int(record.get("Severity"))

    return Incident(
        uuid=assign_id("DriveTexas_iTravel", event_id, ctx.namespace),
        source_system="DriveTexas_iTravel",
        source_event_id=event_id,
        state="TX",
        county=_text(record.get("County")),
        route=_text(record.get("RoadwayName")),
        direction=_text(record.get("Direction")),
        milepost=None,
        latitude=lat,
        longitude=lon,
        reported_time=to_wire_time(record.get("ReportedTime")),
        updated_time=updated,
        cleared_time=None if flagged_active else updated,
        is_active=flagged_active,
        event_type=_text(record.get("TypeOfIncident")) or "Unknown",
        lanes_affected=_text(record.get("LanesAffected")),
        closure_status=DEFAULT_CLOSURE,
        severity_flag=ITRAVEL_SEVERITIES.get(severity, DEFAULT_SEVERITY),
        severity_score=ITRAVEL_SEVERITY_SCORES.get(severity, 25),
        units_involved=None,
    )
