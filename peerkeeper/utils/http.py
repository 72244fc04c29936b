"""
Async HTTP transport for npm registry lookups.

Wraps an HTTP/2-enabled ``httpx.AsyncClient`` and reports every failure
as :class:`~peerkeeper.exceptions.NetworkError`. Registry reads are
idempotent GETs, so timeouts, connection failures, ``429`` and ``5xx``
answers may be retried (``max_retries`` times, exponential backoff with
jitter, ``Retry-After`` honoured for ``429``). Any other ``4xx`` is final.
"""

from __future__ import annotations

import httpx
import random
import asyncio
from typing import Any, Dict, Optional, cast

from peerkeeper.utils.logger import get_logger
from peerkeeper.__version__ import __version__
from peerkeeper.exceptions import NetworkError
from peerkeeper.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_CONCURRENCY,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")

#: Upper bound for a server supplied ``Retry-After`` delay, in seconds.
MAX_RETRY_AFTER = 30.0


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def _status_error(response: httpx.Response, url: str) -> NetworkError:
    status = response.status_code
    if status == 404:
        return NetworkError(f"Resource not found: {url}", url=url, status_code=404)
    return NetworkError(
        f"HTTP {status} error for {url}",
        url=url,
        status_code=status,
        response_body=response.text,
    )


def _retry_after(response: httpx.Response) -> Optional[float]:
    """Seconds requested by a ``Retry-After`` header, if it holds a number."""
    raw = response.headers.get("Retry-After")
    if not isinstance(raw, str):
        return None
    try:
        return min(max(float(raw), 0.0), MAX_RETRY_AFTER)
    except ValueError:
        return None


class HTTPClient:
    """Asynchronous registry client with bounded concurrency.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Retry attempts after the first request (0 = single shot).
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        max_concurrency: Maximum number of requests in flight.

    Example:
        >>> async with HTTPClient(max_retries=2) as client:
        ...     packument = await client.get_json("https://registry.npmjs.org/react")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency

        self._client: Optional[httpx.AsyncClient] = None
        self._slots = asyncio.Semaphore(max_concurrency)

    async def __aenter__(self) -> "HTTPClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            http2=True,
            timeout=httpx.Timeout(self.timeout),
            verify=self.verify_ssl,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
        )

    async def close(self) -> None:
        """Release the connection pool. Safe to call more than once."""
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    @staticmethod
    def _backoff(attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return min(2.0 ** (attempt - 1), 8.0) + random.uniform(0.0, 0.3)

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send ``method url`` until it succeeds or the attempts run out."""
        await self._ensure_client()
        assert self._client is not None

        target = url.strip().strip("\"'")
        attempts = self.max_retries + 1
        cause: Optional[BaseException] = None
        last_status: Optional[int] = None

        for attempt in range(1, attempts + 1):
            delay = self._backoff(attempt)
            try:
                async with self._slots:
                    response = await self._client.request(method, target, **kwargs)
            except httpx.TimeoutException as exc:
                cause, last_status = exc, None
                logger.warning("Timed out fetching %s (attempt %d of %d)", target, attempt, attempts)
            except httpx.TransportError as exc:
                cause, last_status = exc, None
                logger.warning(
                    "Cannot reach %s (attempt %d of %d): %s", target, attempt, attempts, exc
                )
            else:
                status = response.status_code
                if status < 400:
                    return response
                error = _status_error(response, target)
                if not _is_retryable_status(status):
                    raise error
                cause, last_status = error, status
                logger.warning(
                    "HTTP %d from %s (attempt %d of %d)", status, target, attempt, attempts
                )
                if status == 429:
                    delay = _retry_after(response) or delay

            if attempt < attempts:
                logger.debug("Retrying %s in %.2fs", target, delay)
                await asyncio.sleep(delay)

        noun = "attempt" if attempts == 1 else "attempts"
        raise NetworkError(
            f"Request failed after {attempts} {noun}: {target}",
            url=target,
            status_code=last_status,
        ) from cause

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._request_with_retry("GET", url, **kwargs)

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """GET ``url`` and decode the body as a JSON object.

        Raises:
            NetworkError: The request failed, the body is not JSON, or the
                JSON document is not an object.
        """
        response = await self.get(url, **kwargs)

        try:
            document = response.json()
        except ValueError as exc:
            raise NetworkError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if isinstance(document, dict):
            return cast(Dict[str, Any], document)

        raise NetworkError(
            f"Expected JSON object from {url}, got {type(document).__name__}",
            url=url,
            response_body=response.text,
        )
