import json
import logging
from datetime import UTC, datetime
from pathlib import Path

import pytest

from ingest.parsers.geojson import parse_geojson
from ingest.parsers.json import parse_json_records
from normalize.identity import assign_id
from normalize.normalize import NormalizeContext, state_from_routes
from normalize.transformers import (
    TRANSFORMERS,
    Transformer,
    dedupe_records,
    get_transformer,
)


FIXTURES = Path(__file__).resolve().parent / "fixtures"
NOW = datetime(2024, 7, 29, 16, 0, tzinfo=UTC)
CTX = NormalizeContext(fetched_at="2024-07-29 16:00:00", now=NOW)


def _load(name: str) -> object:
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


def _by_event_id(incidents) -> dict:
    return {i.source_event_id: i for i in incidents}


def test_drivetexas_geojson_transform() -> None:
    records = parse_geojson(_load("drivetexas.geojson"))
    incidents = _by_event_id(get_transformer("drivetexas").transform(records, CTX))

    assert set(incidents) == {
        "{7A1C0E5E-1111-4C4B-9C1A-000000000001}",
        "{7A1C0E5E-1111-4C4B-9C1A-000000000002}",
    }

    crash = incidents["{7A1C0E5E-1111-4C4B-9C1A-000000000001}"]
    assert crash.uuid == assign_id("DriveTexas_Official", crash.source_event_id)
    assert (crash.longitude, crash.latitude) == (-97.73, 30.27)
    assert crash.state == "TX"
    assert crash.county == "227"
    assert crash.milepost == 235.4
    assert crash.reported_time == "2024-07-29 15:30:00"
    assert crash.updated_time == "2024-07-29 15:45:00"
    assert crash.cleared_time is None
    assert crash.is_active is True
    assert crash.closure_status == "PARTIAL"
    assert crash.severity_flag == "MEDIUM"

    closure = incidents["{7A1C0E5E-1111-4C4B-9C1A-000000000002}"]
    assert closure.closure_status == "CLOSED"
    assert closure.severity_flag == "LOW"
    assert closure.cleared_time == "2024-06-02 06:00:00"
    assert closure.is_active is False
    assert closure.updated_time == "2024-06-01 06:00:00"


def test_tomtom_transform_maps_vocabularies() -> None:
    records = parse_geojson(_load("tomtom_tile.json"))
    incidents = _by_event_id(get_transformer("tomtom").transform(records, CTX))

    closed = incidents["tt-001"]
    assert closed.source_system == "TomTom_USA"
    assert closed.state == "PA"
    assert closed.route == "PA-322"
    assert closed.event_type == "Road Closed"
    assert closed.closure_status == "CLOSED"
    assert closed.severity_flag == "HIGH"
    assert closed.severity_score == 10
    assert closed.lanes_affected == "From Exit 12 to Exit 14"
    assert closed.is_active is True

    unknown = incidents["tt-002"]
    assert (unknown.longitude, unknown.latitude) == (-84.38, 33.76)
    assert unknown.route == "Main St"
    assert unknown.state is None
    assert unknown.event_type == "Unknown Event"
    assert unknown.closure_status == "UNKNOWN"
    assert unknown.severity_flag == "LOW"
    assert unknown.severity_score is None


def test_tomtom_duplicate_tiles_collapse_to_one_incident() -> None:
    tile = parse_geojson(_load("tomtom_tile.json"))
    incidents = get_transformer("tomtom").transform(tile + tile + tile, CTX)
    assert len(incidents) == 2


def test_ohgo_transform_and_drop_rules() -> None:
    records = parse_json_records(_load("ohgo.json"))
    incidents = _by_event_id(get_transformer("ohgo").transform(records, CTX))

    assert set(incidents) == {"OH-1001", "OH-1002"}

    crash = incidents["OH-1001"]
    assert crash.state == "OH"
    assert crash.county == "Franklin"
    assert crash.milepost == 101.5
    assert crash.updated_time == "2024-07-29 12:30:00"
    assert crash.closure_status == "PARTIAL"
    assert crash.severity_flag == "HIGH"
    assert crash.is_active is True

    cleared = incidents["OH-1002"]
    assert cleared.is_active is False
    assert cleared.cleared_time == "2024-07-28 09:00:00"
    assert cleared.updated_time == "2024-07-28 08:00:00"
    assert cleared.closure_status == "OPEN"
    assert cleared.severity_flag == "LOW"
    assert cleared.route == "I-90"


def test_ohgo_accepts_results_envelope() -> None:
    envelope = {"results": _load("ohgo.json")}
    incidents = get_transformer("ohgo").transform(parse_json_records(envelope), CTX)
    assert len(incidents) == 2


def test_ohgo_construction_epoch_times_and_active_flag() -> None:
    records = parse_json_records(_load("ohgo_construction.json"))
    incidents = _by_event_id(
        get_transformer("ohgo_construction").transform(records, CTX)
    )

    active = incidents["5501"]
    assert active.reported_time == "2024-07-29 08:00:00"
    assert active.updated_time == "2024-07-29 09:00:00"
    assert active.is_active is True
    assert active.milepost == 3.2
    assert active.severity_flag == "MEDIUM"
    assert active.severity_score == 50

    inactive = incidents["5502"]
    assert inactive.is_active is False
    assert inactive.cleared_time == inactive.updated_time == "2024-07-29 09:00:00"
    assert inactive.event_type == "Unknown"


def test_itravel_severity_tables() -> None:
    records = parse_json_records(_load("itravel.json"))
    incidents = _by_event_id(
        get_transformer("drivetexas_itravel").transform(records, CTX)
    )

    collision = incidents["9001"]
    assert collision.severity_flag == "HIGH"
    assert collision.severity_score == 75
    assert collision.reported_time == "2024-07-29 11:00:00"
    assert collision.is_active is True
    assert collision.cleared_time is None

    unmapped = incidents["9002"]
    assert unmapped.severity_flag == "LOW"
    assert unmapped.severity_score == 25
    assert unmapped.is_active is False
    assert unmapped.cleared_time == "2024-07-29 09:00:00"


def test_transform_is_idempotent() -> None:
    records = parse_geojson(_load("drivetexas.geojson"))
    transformer = get_transformer("drivetexas")
    first = sorted(i.uuid for i in transformer.transform(records, CTX))
    second = sorted(i.uuid for i in transformer.transform(records, CTX))
    assert first == second


def test_updated_time_falls_back_to_fetch_time() -> None:
    records = [{"id": "OH-9", "location": {"latitude": 40.0, "longitude": -83.0}}]
    (incident,) = get_transformer("ohgo").transform(records, CTX)
    assert incident.updated_time == "2024-07-29 16:00:00"
    assert incident.reported_time is None


@pytest.mark.parametrize("kind", sorted(TRANSFORMERS))
def test_transformers_never_raise_on_garbage(kind) -> None:
    garbage = [None, 42, "text", {}, {"properties": None}, {"id": "x", "location": 5}]
    assert TRANSFORMERS[kind].transform(garbage, CTX) == []


def test_malformed_record_is_logged_and_dropped(caplog) -> None:
    records = [
        {
            "type": "Feature",
            "properties": {"id": "tt-bad", "iconCategory": [8]},
            "geometry": {"type": "Point", "coordinates": [-83.0, 40.0]},
        }
    ]
    with caplog.at_level(logging.WARNING):
        assert get_transformer("tomtom").transform(records, CTX) == []
    assert "tt-bad" in caplog.text


def _tomtom_feature(event_id: str, delay: object) -> dict:
    return {
        "type": "Feature",
        "properties": {"id": event_id, "iconCategory": 1, "delay": delay},
        "geometry": {"type": "Point", "coordinates": [-83.0, 40.0]},
    }


def test_non_finite_delay_does_not_cost_the_other_records() -> None:
    records = [_tomtom_feature("good", 120), _tomtom_feature("bad", float("inf"))]
    incidents = _by_event_id(get_transformer("tomtom").transform(records, CTX))
    assert incidents["good"].severity_score == 2
    assert incidents["bad"].severity_score is None


@pytest.mark.parametrize("delay, score", [(150, 3), (90, 2), (210, 4), (29, 0)])
def test_tomtom_delay_score_rounds_half_up(delay, score) -> None:
    (incident,) = get_transformer("tomtom").transform([_tomtom_feature("t", delay)], CTX)
    assert incident.severity_score == score


def test_unexpected_record_error_is_contained(caplog) -> None:
    def normalize(*, record, event_id, ctx):
        if event_id == "boom":
            raise OverflowError("cannot convert float infinity to integer")
        return get_transformer("ohgo").normalize(record=record, event_id=event_id, ctx=ctx)

    transformer = Transformer(
        kind="ohgo", record_id=lambda r: r.get("id"), normalize=normalize
    )
    records = [
        {"id": "ok", "location": {"latitude": 40.0, "longitude": -83.0}},
        {"id": "boom", "location": {"latitude": 40.0, "longitude": -83.0}},
    ]
    with caplog.at_level(logging.WARNING):
        incidents = transformer.transform(records, CTX)
    assert [i.source_event_id for i in incidents] == ["ok"]
    assert "OverflowError" in caplog.text


def test_numeric_string_coordinates_are_accepted() -> None:
    records = [{"id": "OH-7", "location": {"latitude": "39.96", "longitude": "-82.99"}}]
    (incident,) = get_transformer("ohgo").transform(records, CTX)
    assert incident.latitude == 39.96
    assert incident.longitude == -82.99

    records = [{"id": "OH-8", "location": {"latitude": "north", "longitude": "-82.99"}}]
    assert get_transformer("ohgo").transform(records, CTX) == []


@pytest.mark.parametrize(
    "severity, flag, score",
    [("3", "HIGH", 75), (" 4 ", "CRITICAL", 95), (2.0, "MEDIUM", 50), ("2.5", "LOW", 25)],
)
def test_itravel_severity_accepts_numeric_strings(severity, flag, score) -> None:
    record = {"Id": 77, "Latitude": 31.0, "Longitude": -97.0, "Severity": severity}
    (incident,) = get_transformer("drivetexas_itravel").transform([record], CTX)
    assert (incident.severity_flag, incident.severity_score) == (flag, score)


def test_dedupe_records_keeps_last_occurrence() -> None:
    unique, missing = dedupe_records(
        [{"id": "a", "v": 1}, {"id": "b"}, {"id": "a", "v": 2}, {"v": 3}],
        lambda r: r.get("id"),
    )
    assert unique == {"a": {"id": "a", "v": 2}, "b": {"id": "b"}}
    assert missing == 1


def test_state_from_routes() -> None:
    assert state_from_routes(["I-80", "PA-322"]) == "PA"
    assert state_from_routes(["I-80"]) is None
    assert state_from_routes(None) is None


def test_unknown_transformer_kind() -> None:
    with pytest.raises(ValueError):
        get_transformer("carrier-pigeon")
