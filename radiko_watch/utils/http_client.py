"""
HTTP utilities

This module handles upstream requests with retry logic.
"""
import asyncio
import json
import logging
from typing import Any, Mapping

import httpx


logger = logging.getLogger(__name__)


def create_client(timeout: float = 30.0) -> httpx.AsyncClient:
    """Create the shared client used for one fetch cycle."""
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Mapping[str, str] | None = None,
    max_retries: int = 3,
    backoff_factor: float = 2.0
) -> bytes:
    """
    GET a URL with exponential backoff retry logic

    Retries on transient network errors (timeouts, connection errors) and 5xx.
    Does NOT retry on 4xx HTTP errors (client errors).

    Args:
        client: Shared async client
        url: URL to fetch
        params: Optional query parameters
        max_retries: Maximum number of attempts
        backoff_factor: Exponential backoff multiplier (wait = backoff_factor ^ attempt)

    Returns:
        Response body

    Raises:
        httpx.HTTPError: If the request fails after all retries
    """
    last_error: Exception | None = None

    for attempt in range(max_retries):
        try:
            response = await client.get(url, params=params)
            response.raise_for_status()
            logger.debug(f"Fetched {len(response.content)} bytes from {url}")
            return response.content

        except (httpx.TimeoutException, httpx.ConnectError) as e:
            # Transient network errors - retry
            last_error = e
            if attempt < max_retries - 1:
                wait_time = backoff_factor ** attempt
                logger.warning(
                    f"Request attempt {attempt + 1}/{max_retries} for {url} failed (transient error): "
                    f"{type(e).__name__}. Retrying in {wait_time:.1f}s..."
                )
                await asyncio.sleep(wait_time)
            else:
                logger.error(f"Request to {url} failed after {max_retries} attempts (transient error)")

        except httpx.HTTPStatusError as e:
            if 400 <= e.response.status_code < 500:
                logger.error(f"HTTP {e.response.status_code} (client error) for {url}")
                raise

            # 5xx server error - retry
            last_error = e
            if attempt < max_retries - 1:
                wait_time = backoff_factor ** attempt
                logger.warning(
                    f"Request attempt {attempt + 1}/{max_retries} for {url} failed "
                    f"(HTTP {e.response.status_code} server error). "
                    f"Retrying in {wait_time:.1f}s..."
                )
                await asyncio.sleep(wait_time)
            else:
                logger.error(f"Request to {url} failed after {max_retries} attempts (HTTP {e.response.status_code})")

    if last_error:
        raise last_error

    raise RuntimeError(f"Failed to fetch {url} after {max_retries} attempts")


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Mapping[str, str] | None = None,
    max_retries: int = 3,
    backoff_factor: float = 2.0
) -> Any:
    """GET a URL and decode the JSON body (see fetch_bytes)."""
    body = await fetch_bytes(
        client,
        url,
        params=params,
        max_retries=max_retries,
        backoff_factor=backoff_factor,
    )
    return json.loads(body)
