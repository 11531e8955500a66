"""Shared HTTP plumbing for platform adapters."""

from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from social_publisher.logging import get_logger

logger = get_logger(__name__)


def build_async_client(timeout: float) -> httpx.AsyncClient:
    """Create the HTTP client shared by OAuth providers and publishers."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={"User-Agent": "social-publisher"},
    )


async def send_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_attempts: int = 3,
    wait_multiplier: float = 0.5,
    **kwargs: Any,
) -> httpx.Response:
    """Send a request, retrying transport failures with exponential backoff.

    HTTP error statuses are returned to the caller untouched; only connection
    errors and timeouts are retried. The last transport error is re-raised.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=wait_multiplier, max=8),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    ):
        with attempt:
            if attempt.retry_state.attempt_number > 1:
                logger.info(
                    "http_request_retry",
                    method=method,
                    url=url,
                    attempt=attempt.retry_state.attempt_number,
                )
            return await client.request(method, url, **kwargs)

    raise AssertionError("unreachable")  # pragma: no cover


def safe_json(response: httpx.Response) -> dict[str, Any] | None:
    """Parse a JSON body, returning None when the body is not a JSON object."""
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
