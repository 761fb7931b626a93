import json
from pathlib import Path

from ingest.parsers.geojson import parse_geojson
from ingest.parsers.json import parse_json_records


FIXTURES = Path(__file__).resolve().parent / "fixtures"


def _load(name: str) -> object:
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


def test_parse_drivetexas_feature_collection() -> None:
    features = parse_geojson(_load("drivetexas.geojson"))
    assert len(features) == 3
    assert features[0]["type"] == "Feature"


def test_parse_tomtom_incidents_wrapper() -> None:
    features = parse_geojson(_load("tomtom_tile.json"))
    assert [f["properties"]["id"] for f in features] == ["tt-001", "tt-002"]


def test_parse_geojson_rejects_other_shapes() -> None:
    assert parse_geojson([]) == []
    assert parse_geojson({"type": "Feature"}) == []


def test_parse_json_records_bare_array_and_envelope() -> None:
    assert len(parse_json_records(_load("itravel.json"))) == 2
    assert len(parse_json_records(_load("ohgo_construction.json"))) == 2
    assert parse_json_records({"Results": [{"id": 1}]}) == [{"id": 1}]
    assert parse_json_records({"message": "no data"}) == []
    assert parse_json_records("nope") == []
