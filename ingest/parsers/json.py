from __future__ import annotations


_ENVELOPE_KEYS = ("results", "Results", "incidents", "items", "data")


def parse_json_records(doc: object) -> list[dict]:
    """Records from a bare array or from the first list-valued envelope key."""
    if isinstance(doc, list):
        return doc
    if isinstance(doc, dict):
        for key in _ENVELOPE_KEYS:
            value = doc.get(key)
            if isinstance(value, list):
                return value
    return []
