from __future__ import annotations


def parse_geojson(doc: object) -> list[dict]:
    if not isinstance(doc, dict):
        return []
    features = doc.get("features")
    if isinstance(features, list):
        return list(features)
    # TomTom's incidentDetails wraps its GeoJSON features under "incidents".
    incidents = doc.get("incidents")
    if isinstance(incidents, list):
        return [f for f in incidents if isinstance(f, dict) and "properties" in f]
    return []
