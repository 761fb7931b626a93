from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ingest.errors import FetchError, ParseError


log = logging.getLogger(__name__)

_HINTS = {
    401: " This is an authentication error. Verify that the API key for this source is correct and active.",
    404: " This is a 'Not Found' error. The URL configured for this source is likely incorrect.",
}


def _timeout(read_seconds: float) -> httpx.Timeout:
    return httpx.Timeout(connect=5.0, read=read_seconds, write=5.0, pool=5.0)


async def fetch_json(
    client: httpx.AsyncClient,
    *,
    source_name: str,
    url: str,
    user_agent: str,
    params: dict[str, str] | None = None,
    extra_headers: dict[str, str] | None = None,
    timeout_seconds: float = 15.0,
    logger: logging.Logger = log,
) -> Any:
    headers = {
        "User-Agent": user_agent,
        "Accept": "application/json, application/geo+json, */*",
    }
    if extra_headers:
        headers.update(extra_headers)

    logger.debug("[%s] fetching %s", source_name, url)
    try:
        response = await client.get(
            url, params=params, headers=headers, timeout=_timeout(timeout_seconds)
        )
    except httpx.TimeoutException as e:
        raise FetchError(
            source_name, f"timed out after {timeout_seconds:g}s ({e.__class__.__name__})"
        ) from e
    except httpx.RequestError as e:
        raise FetchError(source_name, f"request_error:{e.__class__.__name__}") from e

    body = response.text
    if not response.is_success:
        raise FetchError(
            source_name,
            f"HTTP error {response.status_code}. Response: {body}"
            + _HINTS.get(response.status_code, ""),
            status_code=response.status_code,
            body=body,
        )

    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ParseError(source_name, body) from e
