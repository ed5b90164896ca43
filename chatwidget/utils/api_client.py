"""Simple HTTP client utilities using httpx."""

from __future__ import annotations

import httpx
from typing import Any, Dict

JSON_HEADERS = {"content-type": "application/json"}


async def post(
    url: str,
    json: Dict[str, Any],
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
) -> httpx.Response:
    """Perform an asynchronous HTTP POST request with a JSON body.

    When ``client`` is given it is reused and left open; otherwise a
    short-lived client is created for this single request.
    """
    if client is not None:
        return await client.post(url, json=json, headers=JSON_HEADERS, timeout=timeout)
    async with httpx.AsyncClient(timeout=timeout) as owned:
        return await owned.post(url, json=json, headers=JSON_HEADERS)
