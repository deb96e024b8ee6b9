"""HTTP utilities for talking to the learning backend."""

from __future__ import annotations

import asyncio
from typing import Any, Final

import httpx

from coursetree.config import (
    COURSETREE_API_TOKEN,
    COURSETREE_READ_BACKOFF_S,
    COURSETREE_READ_MAX_RETRIES,
    COURSETREE_REQUEST_TIMEOUT_S,
    COURSETREE_USER_AGENT,
)
from coursetree.exceptions import FetchError, NodeNotFoundError, PersistenceError

RETRY_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


def default_headers(token: str | None = COURSETREE_API_TOKEN) -> dict[str, str]:
    """Headers sent with every backend request."""
    headers = {
        "User-Agent": COURSETREE_USER_AGENT,
        "Content-Type": "application/json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def create_client(
    base_url: str,
    *,
    token: str | None = COURSETREE_API_TOKEN,
    timeout_s: float | None = COURSETREE_REQUEST_TIMEOUT_S,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create a pooled client for the backend.

    Args:
        base_url: API root, e.g. ``http://localhost:8000/api``.
        token: Optional bearer token.
        timeout_s: Per-request timeout; None disables client-side timeouts.
        transport: Optional transport override (tests use httpx.MockTransport).
    """
    return httpx.AsyncClient(
        base_url=base_url,
        headers=default_headers(token),
        timeout=httpx.Timeout(timeout_s),
        transport=transport,
    )


async def get_json_with_retries(url: str, *, client: httpx.AsyncClient) -> Any:
    """GET a JSON document, retrying transient failures.

    Args:
        url: URL or path relative to the client's base URL.
        client: Client to send the request with.

    Returns:
        The decoded JSON body.

    Raises:
        NodeNotFoundError: If the backend answers 404.
        FetchError: If the request still fails after all retries.
    """
    last_exc: Exception | None = None

    for attempt in range(COURSETREE_READ_MAX_RETRIES + 1):
        try:
            response = await client.get(url)

            if response.status_code == 404:
                raise NodeNotFoundError(f"Resource not found at {url}")

            if response.status_code in RETRY_STATUS_CODES:
                last_exc = FetchError(f"HTTP {response.status_code} from {url}")
            else:
                response.raise_for_status()
                try:
                    return response.json()
                except ValueError as exc:
                    raise FetchError(f"Invalid JSON from {url}: {exc}") from exc
        except (httpx.RequestError, httpx.HTTPStatusError) as exc:
            last_exc = exc

        if attempt < COURSETREE_READ_MAX_RETRIES:
            backoff = COURSETREE_READ_BACKOFF_S * (2**attempt)
            await asyncio.sleep(backoff)

    raise FetchError(f"Failed to fetch {url}: {last_exc}")


async def patch_json(url: str, payload: dict[str, Any], *, client: httpx.AsyncClient) -> int:
    """Send a single PATCH request; there is no retry.

    Returns:
        The 2xx status code of the response. The body is ignored.

    Raises:
        PersistenceError: On any non-2xx status or transport error.
    """
    try:
        response = await client.patch(url, json=payload)
    except httpx.RequestError as exc:
        raise PersistenceError(f"PATCH {url} failed: {exc}") from exc

    if not response.is_success:
        raise PersistenceError(
            f"PATCH {url} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )
    return response.status_code
