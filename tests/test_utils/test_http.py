"""Unit tests for deplock.utils.http.

Test Coverage:
- Client construction and lifecycle
- get_bytes success path and URL cleaning
- Error mapping: 404 -> PyPIError, other 4xx -> NetworkError
- Retries for 5xx, timeouts and transport errors
- Retry-After handling for 429 responses
"""

from __future__ import annotations

from typing import Any, List
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from deplock.exceptions import NetworkError, PyPIError
from deplock.utils.http import HTTPClient, _backoff_seconds, _retry_after_seconds

URL = "https://pypi.org/pypi/requests/json"


# ============================================================================
# Helpers
# ============================================================================


def _response(status: int, *, body: bytes = b"{}", headers: Any = None) -> httpx.Response:
    return httpx.Response(
        status,
        content=body,
        headers=headers,
        request=httpx.Request("GET", URL),
    )


def _client_with(responses: List[Any]) -> HTTPClient:
    """HTTPClient whose transport returns (or raises) each item in turn."""
    client = HTTPClient(timeout=5, max_retries=2)
    mock = MagicMock()
    mock.request = AsyncMock(side_effect=responses)
    mock.aclose = AsyncMock()
    client._client = mock
    return client


@pytest.fixture
def no_sleep():
    """Patch asyncio.sleep inside the http module so retries are instant."""
    with patch("deplock.utils.http.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


# ============================================================================
# Construction
# ============================================================================


@pytest.mark.unit
class TestHTTPClientInit:
    """Tests for HTTPClient initialization."""

    def test_default_values(self) -> None:
        """Defaults come from constants and the user agent names deplock."""
        client = HTTPClient()

        assert client.timeout == 30
        assert client.max_retries == 3
        assert client.max_concurrency == 10
        assert client.max_rate_limit_retries == 5
        assert "deplock" in client.user_agent
        assert client._client is None

    def test_custom_user_agent(self) -> None:
        assert HTTPClient(user_agent="Custom/1.0").user_agent == "Custom/1.0"


@pytest.mark.unit
class TestHTTPClientLifecycle:
    """Tests for the async context manager."""

    @pytest.mark.asyncio
    async def test_context_manager_opens_and_closes(self) -> None:
        """Entering creates an httpx client and exiting closes it."""
        async with HTTPClient() as client:
            assert isinstance(client._client, httpx.AsyncClient)
            assert client._client.headers["User-Agent"] == client.user_agent

        assert client._client is None

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        """Closing an unopened client does nothing."""
        client = HTTPClient()

        await client.close()
        await client.close()

        assert client._client is None


# ============================================================================
# Requests
# ============================================================================


@pytest.mark.unit
class TestGetBytes:
    """Tests for successful downloads and error mapping."""

    @pytest.mark.asyncio
    async def test_returns_body(self) -> None:
        client = _client_with([_response(200, body=b'{"info": {}}')])

        assert await client.get_bytes(URL) == b'{"info": {}}'
        client._client.request.assert_awaited_once_with("GET", URL)

    @pytest.mark.asyncio
    async def test_url_is_cleaned(self) -> None:
        """Surrounding whitespace and quotes are stripped from the URL."""
        client = _client_with([_response(200)])

        await client.get_bytes(f"  '{URL}' ")

        client._client.request.assert_awaited_once_with("GET", URL)

    @pytest.mark.asyncio
    async def test_404_raises_pypi_error(self) -> None:
        """404 is not retried and maps to PyPIError."""
        client = _client_with([_response(404)])

        with pytest.raises(PyPIError) as exc_info:
            await client.get_bytes(URL)

        assert exc_info.value.status_code == 404
        assert client._client.request.await_count == 1

    @pytest.mark.asyncio
    async def test_other_4xx_raises_network_error(self) -> None:
        """Client errors other than 404 and 429 are not retried."""
        client = _client_with([_response(403, body=b"forbidden")])

        with pytest.raises(NetworkError) as exc_info:
            await client.get_bytes(URL)

        assert not isinstance(exc_info.value, PyPIError)
        assert exc_info.value.status_code == 403
        assert exc_info.value.response_body == "forbidden"
        assert client._client.request.await_count == 1


# ============================================================================
# Retries
# ============================================================================


@pytest.mark.unit
class TestRetries:
    """Tests for retry and backoff behavior."""

    @pytest.mark.asyncio
    async def test_5xx_then_success(self, no_sleep: AsyncMock) -> None:
        """Server errors are retried until a success."""
        client = _client_with([_response(503), _response(200, body=b"ok")])

        assert await client.get_bytes(URL) == b"ok"
        assert client._client.request.await_count == 2
        assert no_sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_5xx_exhausts_retries(self, no_sleep: AsyncMock) -> None:
        """The final error chains the last server response."""
        client = _client_with([_response(500), _response(502), _response(503)])

        with pytest.raises(NetworkError, match="after 3 attempts") as exc_info:
            await client.get_bytes(URL)

        assert isinstance(exc_info.value.__cause__, NetworkError)
        assert exc_info.value.__cause__.status_code == 503

    @pytest.mark.asyncio
    async def test_timeout_exhausts_retries(self, no_sleep: AsyncMock) -> None:
        """Persistent timeouts fail after max_retries + 1 attempts."""
        timeout = httpx.ConnectTimeout("slow")
        client = _client_with([timeout, timeout, timeout])

        with pytest.raises(NetworkError, match="after 3 attempts"):
            await client.get_bytes(URL)

        assert client._client.request.await_count == 3
        assert no_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_transport_error_then_success(self, no_sleep: AsyncMock) -> None:
        """Connection errors are retried."""
        client = _client_with([httpx.ConnectError("refused"), _response(200, body=b"ok")])

        assert await client.get_bytes(URL) == b"ok"

    @pytest.mark.asyncio
    async def test_429_honors_retry_after(self, no_sleep: AsyncMock) -> None:
        """A 429 waits for Retry-After seconds before trying again."""
        client = _client_with(
            [_response(429, headers={"Retry-After": "7"}), _response(200)]
        )

        await client.get_bytes(URL)

        no_sleep.assert_awaited_once_with(7)

    @pytest.mark.asyncio
    async def test_429_does_not_use_up_retries(self, no_sleep: AsyncMock) -> None:
        """Rate limiting has its own budget separate from transient failures."""
        client = _client_with([_response(429)] * 4 + [_response(200, body=b"ok")])

        assert await client.get_bytes(URL) == b"ok"

    @pytest.mark.asyncio
    async def test_429_limit(self, no_sleep: AsyncMock) -> None:
        """Too many 429 responses raise NetworkError."""
        client = _client_with([_response(429) for _ in range(10)])

        with pytest.raises(NetworkError) as exc_info:
            await client.get_bytes(URL)

        assert exc_info.value.status_code == 429
        assert client._client.request.await_count == 6


@pytest.mark.unit
class TestRetryHelpers:
    """Tests for the backoff and Retry-After helpers."""

    @pytest.mark.parametrize(
        "headers, expected",
        [
            ({"Retry-After": "3"}, 3),
            ({"Retry-After": "-5"}, 0),
            ({"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}, 1),
            ({}, 1),
        ],
    )
    def test_retry_after(self, headers: Any, expected: int) -> None:
        assert _retry_after_seconds(_response(429, headers=headers)) == expected

    def test_backoff_doubles(self) -> None:
        assert 1.0 <= _backoff_seconds(1) <= 1.3
        assert 2.0 <= _backoff_seconds(2) <= 2.3
        assert 4.0 <= _backoff_seconds(3) <= 4.3
