from __future__ import annotations

import logging

from geo.coords import DEFAULT_VALIDATOR, CoordinateValidator


log = logging.getLogger(__name__)

Point = tuple[float, float]


def _pair(coord: object) -> Point | None:
    if not isinstance(coord, (list, tuple)) or len(coord) < 2:
        return None
    lon, lat = coord[0], coord[1]
    if isinstance(lon, bool) or isinstance(lat, bool):
        return None
    if not isinstance(lon, (int, float)) or not isinstance(lat, (int, float)):
        return None
    return (float(lon), float(lat))


def _line_point(coords: object, validator: CoordinateValidator) -> Point | None:
    if not isinstance(coords, list) or not coords:
        return None

    mid = _pair(coords[len(coords) // 2])
    if mid is not None and validator.is_valid(mid[1], mid[0]):
        return mid

    pairs = [p for p in (_pair(c) for c in coords) if p is not None]
    for lon, lat in pairs:
        if validator.is_valid(lat, lon):
            return (lon, lat)

    if pairs:
        centroid = (
            sum(p[0] for p in pairs) / len(pairs),
            sum(p[1] for p in pairs) / len(pairs),
        )
        if validator.is_valid(centroid[1], centroid[0]):
            return centroid
    return None


def _ring_start(ring: object, validator: CoordinateValidator) -> Point | None:
    if not isinstance(ring, list) or not ring:
        return None
    start = _pair(ring[0])
    if start is not None and validator.is_valid(start[1], start[0]):
        return start
    return None


def extract_point(
    geometry: object,
    validator: CoordinateValidator = DEFAULT_VALIDATOR,
    *,
    logger: logging.Logger = log,
) -> Point | None:
    """Reduce a GeoJSON geometry to one representative ``(lon, lat)``.

    LineStrings prefer the middle vertex, then the first valid vertex, then
    the centroid of all vertices. Polygons use the first vertex of the
    outer ring. Failure is ``None``, never an exception.
    """
    if not isinstance(geometry, dict):
        return None
    geom_type = geometry.get("type")
    coords = geometry.get("coordinates")
    if geom_type is None or coords is None:
        return None

    if geom_type == "Point":
        point = _pair(coords)
        if point is not None and validator.is_valid(point[1], point[0]):
            return point
        return None

    if geom_type == "LineString":
        return _line_point(coords, validator)

    if geom_type == "MultiLineString":
        if not isinstance(coords, list):
            return None
        for line in coords:
            point = _line_point(line, validator)
            if point is not None:
                return point
        return None

    if geom_type == "Polygon":
        if not isinstance(coords, list) or not coords:
            return None
        return _ring_start(coords[0], validator)

    if geom_type == "MultiPolygon":
        if not isinstance(coords, list) or not coords:
            return None
        first = coords[0]
        if not isinstance(first, list) or not first:
            return None
        return _ring_start(first[0], validator)

    logger.debug("unknown geometry type %r", geom_type)
    return None
