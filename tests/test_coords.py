import math

import pytest

from geo.coords import BoundingBox, CoordinateValidator, is_valid_coordinate
from geo.tiles import generate_tiles


@pytest.mark.parametrize(
    ("lat", "lon", "expected"),
    [
        (1.0, 1.0, False),
        (1.00005, 0.99995, False),
        (0, 0, False),
        (39.96, -82.99, True),
        (51.0, -82.99, False),
        (39.96, -65.0, False),
        (39.96, -126.0, False),
        (23.9, -82.99, False),
        (24.0, -125.0, True),
        (50.0, -66.0, True),
    ],
)
def test_default_validator_cases(lat, lon, expected) -> None:
    assert is_valid_coordinate(lat, lon) is expected


def test_validator_rejects_non_numbers_without_raising() -> None:
    assert is_valid_coordinate(None, -82.99) is False
    assert is_valid_coordinate("39.96", "-82.99") is False
    assert is_valid_coordinate(True, -82.99) is False
    assert is_valid_coordinate(math.nan, -82.99) is False
    assert is_valid_coordinate(39.96, math.inf) is False


def test_validator_uses_configured_bbox() -> None:
    europe = CoordinateValidator(
        BoundingBox(min_lat=35.0, max_lat=70.0, min_lon=-10.0, max_lon=40.0)
    )
    assert europe.is_valid(48.85, 2.35) is True
    assert europe.is_valid(39.96, -82.99) is False
    assert europe.is_valid(1.0, 1.0) is False


def test_generate_tiles_covers_bbox() -> None:
    bbox = BoundingBox(min_lat=30.0, max_lat=31.0, min_lon=-100.0, max_lon=-98.5)
    tiles = generate_tiles(bbox, 0.85)
    assert tiles == [
        "-100.00,30.00,-99.15,30.85",
        "-99.15,30.00,-98.30,30.85",
        "-100.00,30.85,-99.15,31.70",
        "-99.15,30.85,-98.30,31.70",
    ]


def test_generate_tiles_rejects_bad_step() -> None:
    bbox = BoundingBox(min_lat=30.0, max_lat=31.0, min_lon=-100.0, max_lon=-99.0)
    with pytest.raises(ValueError):
        generate_tiles(bbox, 0)
