"""
Async HTTP transport for the metadata fetch path.

:class:`HTTPClient` owns one lazily opened ``httpx.AsyncClient`` (HTTP/2,
redirects followed) and adds bounded concurrency and retries on top of it:

- timeouts, transport errors and 5xx responses back off exponentially
- 429 responses wait for ``Retry-After`` and count against their own limit
- 404 raises :class:`PyPIError`; any other 4xx raises :class:`NetworkError`
"""

from __future__ import annotations

import httpx
import random
import asyncio
from typing import Any, Optional

from deplock.utils.logger import get_logger
from deplock.__version__ import __version__
from deplock.exceptions import NetworkError, PyPIError
from deplock.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_CONCURRENT,
    MAX_RATE_LIMIT_RETRIES,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")


class HTTPClient:
    """Connection pool shared by every metadata download of a run.

    Args:
        timeout: Per-request timeout in seconds.
        max_retries: Retries after the first attempt for transient failures.
        max_concurrency: Requests allowed in flight at once.
        user_agent: Replaces the default ``deplock/<version>`` agent.

    Example:
        >>> async with HTTPClient(max_concurrency=4) as client:
        ...     body = await client.get_bytes("https://pypi.org/pypi/requests/json")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_concurrency: int = DEFAULT_MAX_CONCURRENT,
        user_agent: Optional[str] = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.max_concurrency = max_concurrency
        self.max_rate_limit_retries = MAX_RATE_LIMIT_RETRIES
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)

        self._client: Optional[httpx.AsyncClient] = None
        self._slots: Optional[asyncio.Semaphore] = None

    async def __aenter__(self) -> "HTTPClient":
        self._open()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    def _open(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )
        if self._slots is None:
            self._slots = asyncio.Semaphore(self.max_concurrency)
        return self._client

    async def close(self) -> None:
        """Close the connection pool; the client reopens on next use."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._slots = None

    async def get_bytes(self, url: str) -> bytes:
        """Download *url* and return the raw response body.

        Raises:
            PyPIError: The resource does not exist (404).
            NetworkError: Any other client error, or retries ran out.
        """
        response = await self._fetch(url.strip().strip("\"'"))
        return response.content

    async def _fetch(self, url: str) -> httpx.Response:
        client = self._open()
        assert self._slots is not None

        failures = 0
        throttled = 0
        last_error: Optional[Exception] = None

        while True:
            try:
                async with self._slots:
                    response = await client.request("GET", url)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_error = exc
                logger.warning(
                    "Request to %s failed (%d/%d): %s",
                    url,
                    failures + 1,
                    self.max_retries + 1,
                    exc,
                )
            else:
                status = response.status_code
                if status < 400:
                    return response

                if status == 429:
                    throttled += 1
                    if throttled > self.max_rate_limit_retries:
                        raise NetworkError(
                            f"Rate limit exceeded after {self.max_rate_limit_retries} retries",
                            url=url,
                            status_code=429,
                        )
                    wait = _retry_after_seconds(response)
                    logger.warning(
                        "Rate limited by %s, waiting %ds (%d/%d)",
                        url,
                        wait,
                        throttled,
                        self.max_rate_limit_retries,
                    )
                    await asyncio.sleep(wait)
                    continue

                if status == 404:
                    raise PyPIError(f"Resource not found: {url}", url=url, status_code=404)

                if status < 500:
                    raise NetworkError(
                        f"HTTP {status} error for {url}",
                        url=url,
                        status_code=status,
                        response_body=response.text,
                    )

                last_error = NetworkError(f"HTTP {status} error for {url}", url=url, status_code=status)
                logger.warning(
                    "Server error %d from %s (%d/%d)",
                    status,
                    url,
                    failures + 1,
                    self.max_retries + 1,
                )

            failures += 1
            if failures > self.max_retries:
                raise NetworkError(
                    f"Request failed after {failures} attempts: {url}",
                    url=url,
                ) from last_error

            delay = _backoff_seconds(failures)
            logger.debug("Retrying %s in %.2fs", url, delay)
            await asyncio.sleep(delay)


def _backoff_seconds(failures: int) -> float:
    """Exponential delay with jitter: ~1s, ~2s, ~4s, ..."""
    return 2 ** (failures - 1) + random.uniform(0.0, 0.3)


def _retry_after_seconds(response: httpx.Response) -> int:
    try:
        return max(0, int(response.headers.get("Retry-After", "1")))
    except ValueError:
        return 1
