from __future__ import annotations

from geo.coords import BoundingBox


def generate_tiles(bbox: BoundingBox, step: float) -> list[str]:
    """Cover ``bbox`` with ``step``-degree tiles as ``minLon,minLat,maxLon,maxLat``.

    Tiles may overhang the north and east edges by less than one step.
    """
    if step <= 0:
        raise ValueError("tile step must be positive")

    tiles: list[str] = []
    lat = bbox.min_lat
    while lat < bbox.max_lat:
        lon = bbox.min_lon
        while lon < bbox.max_lon:
            tiles.append(f"{lon:.2f},{lat:.2f},{lon + step:.2f},{lat + step:.2f}")
            lon += step
        lat += step
    return tiles
