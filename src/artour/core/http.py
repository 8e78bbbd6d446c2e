"""
HTTP helpers.

Small surface area: GET JSON for the buildings dataset (sync), plus GET text and
GET bytes for building enrichment (async). Every request carries the same
User-Agent and a timeout, and non-2xx responses raise so callers decide how to fail.
"""

from __future__ import annotations

from typing import Any

import httpx

from artour import __version__

DEFAULT_USER_AGENT = f"artour/{__version__}"


def _headers(extra: dict[str, str] | None) -> dict[str, str]:
    headers = {"User-Agent": DEFAULT_USER_AGENT}
    if extra:
        headers.update(extra)
    return headers


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    transport: httpx.BaseTransport | None = None,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    with httpx.Client(timeout=timeout_seconds, transport=transport) as client:
        resp = client.get(url, params=params, headers=_headers(headers))
        resp.raise_for_status()
        return resp.json()


async def aget_text(client: httpx.AsyncClient, url: str, *, headers: dict[str, str] | None = None) -> str:
    """GET `url` with an existing async client and return the body as text."""
    resp = await client.get(url, headers=_headers(headers))
    resp.raise_for_status()
    return resp.text


async def aget_bytes(client: httpx.AsyncClient, url: str, *, headers: dict[str, str] | None = None) -> bytes:
    """GET `url` with an existing async client and return the raw body."""
    resp = await client.get(url, headers=_headers(headers))
    resp.raise_for_status()
    return resp.content
