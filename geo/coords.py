from __future__ import annotations

import math
from dataclasses import dataclass


_PLACEHOLDER = (1.0, 1.0)
_PLACEHOLDER_EPSILON = 0.0001


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float) -> bool:
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lon <= lon <= self.max_lon
        )


CONTINENTAL_US = BoundingBox(min_lat=24.0, max_lat=50.0, min_lon=-125.0, max_lon=-66.0)


def _as_float(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True)
class CoordinateValidator:
    """Rejects placeholder, null-island and out-of-region points.

    Never raises: anything that is not a finite number is simply invalid.
    """

    bbox: BoundingBox = CONTINENTAL_US

    def is_valid(self, lat: object, lon: object) -> bool:
        lat_f = _as_float(lat)
        lon_f = _as_float(lon)
        if lat_f is None or lon_f is None:
            return False
        if (
            abs(lat_f - _PLACEHOLDER[0]) < _PLACEHOLDER_EPSILON
            and abs(lon_f - _PLACEHOLDER[1]) < _PLACEHOLDER_EPSILON
        ):
            return False
        if lat_f == 0 and lon_f == 0:
            return False
        return self.bbox.contains(lat_f, lon_f)


DEFAULT_VALIDATOR = CoordinateValidator()


def is_valid_coordinate(lat: object, lon: object) -> bool:
    return DEFAULT_VALIDATOR.is_valid(lat, lon)
