from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx

from app.settings import Settings
from geo.tiles import generate_tiles
from ingest.feed_packs import FeedPackEntry, load_feed_pack_entries
from ingest.fetch import fetch_json
from ingest.parsers.geojson import parse_geojson
from ingest.parsers.json import parse_json_records
from ingest.sync import SourcePlugin, fetch_tiles
from normalize.transformers import Transformer, get_transformer


ParseFn = Callable[[object], list[dict]]

_PARSERS: dict[str, ParseFn] = {
    "tomtom": parse_geojson,
    "drivetexas": parse_geojson,
    "ohgo": parse_json_records,
    "ohgo_construction": parse_json_records,
    "drivetexas_itravel": parse_json_records,
}

TOMTOM_FIELDS = (
    "{incidents{type,geometry{type,coordinates},properties{id,iconCategory,"
    "magnitudeOfDelay,startTime,endTime,from,to,delay,roadNumbers}}}"
)


def http_source(
    client: httpx.AsyncClient,
    settings: Settings,
    *,
    name: str,
    url: str,
    transformer: Transformer,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> SourcePlugin:
    parse = _PARSERS[transformer.kind]

    async def fetch() -> list[dict]:
        doc = await fetch_json(
            client,
            source_name=name,
            url=url,
            user_agent=settings.user_agent,
            params=params,
            extra_headers=headers,
            timeout_seconds=settings.fetch_timeout_seconds,
        )
        return parse(doc)

    return SourcePlugin(name=name, transformer=transformer, fetch=fetch)


def tiled_source(
    client: httpx.AsyncClient,
    settings: Settings,
    *,
    name: str,
    url: str,
    transformer: Transformer,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> SourcePlugin:
    parse = _PARSERS[transformer.kind]
    tiles = generate_tiles(settings.tiling_bbox(), settings.tile_step_degrees)

    async def fetch_tile(tile: str) -> list[dict]:
        doc = await fetch_json(
            client,
            source_name=name,
            url=url,
            user_agent=settings.user_agent,
            params={**(params or {}), "bbox": tile},
            extra_headers=headers,
            timeout_seconds=settings.fetch_timeout_seconds,
        )
        return parse(doc)

    async def fetch() -> list[dict]:
        return await fetch_tiles(
            name, tiles, fetch_tile, concurrency=settings.tile_concurrency
        )

    return SourcePlugin(name=name, transformer=transformer, fetch=fetch)


def builtin_sources(settings: Settings, client: httpx.AsyncClient) -> list[SourcePlugin]:
    sources = [
        http_source(
            client,
            settings,
            name="TEXAS",
            url=settings.drivetexas_url,
            transformer=get_transformer("drivetexas"),
            params={"key": settings.drivetexas_api_key}
            if settings.drivetexas_api_key
            else None,
        )
    ]

    ohgo_key = (settings.ohgo_api_key or "").strip()
    if ohgo_key:
        sources.append(
            http_source(
                client,
                settings,
                name="OHGO",
                url=settings.ohgo_url,
                transformer=get_transformer("ohgo"),
                headers={"Authorization": f"APIKEY {ohgo_key}"},
            )
        )

    tomtom_key = (settings.tomtom_api_key or "").strip()
    if tomtom_key:
        sources.append(
            tiled_source(
                client,
                settings,
                name="TOMTOM_USA",
                url=settings.tomtom_url,
                transformer=get_transformer("tomtom"),
                params={
                    "key": tomtom_key,
                    "fields": TOMTOM_FIELDS,
                    "language": "en-US",
                    "timeValidityFilter": "present",
                },
            )
        )

    if settings.ohgo_construction_enabled:
        sources.append(
            http_source(
                client,
                settings,
                name="OHGO_CONSTRUCTION",
                url=settings.ohgo_construction_url,
                transformer=get_transformer("ohgo_construction"),
            )
        )

    if settings.drivetexas_itravel_enabled:
        sources.append(
            http_source(
                client,
                settings,
                name="TEXAS_ITRAVEL",
                url=settings.drivetexas_itravel_url,
                transformer=get_transformer("drivetexas_itravel"),
            )
        )

    return sources


def _entry_source(
    entry: FeedPackEntry, settings: Settings, client: httpx.AsyncClient
) -> SourcePlugin:
    build = tiled_source if entry.tiled else http_source
    return build(
        client,
        settings,
        name=entry.name,
        url=entry.url,
        transformer=get_transformer(entry.transformer),
        params=entry.params or None,
        headers=entry.headers or None,
    )


def feed_pack_sources(
    feeds_dir: Path, settings: Settings, client: httpx.AsyncClient
) -> list[SourcePlugin]:
    sources: list[SourcePlugin] = []
    for entries in load_feed_pack_entries(feeds_dir).values():
        for entry in entries:
            if entry.enabled:
                sources.append(_entry_source(entry, settings, client))
    return sources


def configured_sources(settings: Settings, client: httpx.AsyncClient) -> list[SourcePlugin]:
    return builtin_sources(settings, client) + feed_pack_sources(
        settings.feeds_dir, settings, client
    )
