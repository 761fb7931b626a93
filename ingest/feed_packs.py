from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from normalize.transformers import TRANSFORMERS


@dataclass(frozen=True)
class FeedPackEntry:
    pack_id: str
    name: str
    transformer: str
    url: str
    headers: dict[str, str]
    params: dict[str, str]
    tiled: bool
    enabled: bool


def _str_map(value: object, path: Path, field: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"invalid {field} in feed entry: {path}")
    return {str(k): str(v) for k, v in value.items()}


def load_feed_pack_entries(feeds_dir: Path) -> dict[str, list[FeedPackEntry]]:
    packs: dict[str, list[FeedPackEntry]] = {}
    if not feeds_dir.exists():
        return packs

    for path in sorted(feeds_dir.glob("*.yaml")):
        pack_id = path.stem
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        if raw is None:
            packs[pack_id] = []
            continue
        if not isinstance(raw, list):
            raise ValueError(f"invalid feed pack: {path}")

        entries: list[FeedPackEntry] = []
        for entry in raw:
            if not isinstance(entry, dict) or not entry.get("name") or not entry.get("url"):
                raise ValueError(f"invalid feed entry in: {path}")
            transformer = str(entry.get("transformer") or "")
            if transformer not in TRANSFORMERS:
                raise ValueError(f"unknown transformer {transformer!r} in: {path}")
            entries.append(
                FeedPackEntry(
                    pack_id=pack_id,
                    name=str(entry["name"]),
                    transformer=transformer,
                    url=str(entry["url"]),
                    headers=_str_map(entry.get("headers"), path, "headers"),
                    params=_str_map(entry.get("params"), path, "params"),
                    tiled=bool(entry.get("tiled", False)),
                    enabled=bool(entry.get("enabled", True)),
                )
            )

        packs[pack_id] = entries

    return packs
