"""Package metadata sources for deplock.

The resolver only needs one capability from the outside world: "give me the
:class:`~deplock.models.package.Package` record for this name and version
selector". That capability is the :class:`MetadataSource` protocol, so tests
can pass in-memory fakes and the CLI passes :class:`PyPIMetadataSource`.

:class:`PyPIMetadataSource` reads the PyPI JSON API through the shared
:class:`~deplock.utils.http.HTTPClient` and, when given a
:class:`CacheStore` (normally :class:`~deplock.utils.disk_cache.DiskCache`),
keeps the raw response bodies keyed by request URL::

    async with HTTPClient() as client:
        source = PyPIMetadataSource(client, cache=DiskCache())
        package = await source.fetch("requests", "latest")
        print(package.version)
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Protocol

from deplock.constants import LATEST_SELECTOR, PYPI_JSON_API, PYPI_VERSION_JSON_API
from deplock.exceptions import FileOperationError, NetworkError, PyPIError
from deplock.models.package import Package
from deplock.utils.http import HTTPClient
from deplock.utils.logger import get_logger

logger = get_logger("metadata_source")

# Public API
__all__ = ["CacheStore", "MetadataSource", "PyPIMetadataSource", "build_metadata_url"]


# ---------------------------------------------------------------------------
# Capability interfaces
# ---------------------------------------------------------------------------


class MetadataSource(Protocol):
    """Anything that can fetch a package record."""

    async def fetch(self, name: str, version_selector: str) -> Package:
        """Return the package for *name*.

        *version_selector* is either ``"latest"`` or an exact version.
        Implementations raise on failure; the resolver logs and skips.
        """
        ...


class CacheStore(Protocol):
    """Byte-oriented key/value store used to memoize raw responses."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...


# ---------------------------------------------------------------------------
# PyPI implementation
# ---------------------------------------------------------------------------


def build_metadata_url(name: str, version_selector: str = LATEST_SELECTOR) -> str:
    """Return the PyPI JSON API URL for a name and selector.

    Example::

        >>> build_metadata_url("requests")
        'https://pypi.org/pypi/requests/json'
        >>> build_metadata_url("requests", "2.31.0")
        'https://pypi.org/pypi/requests/2.31.0/json'
    """
    if version_selector == LATEST_SELECTOR:
        return PYPI_JSON_API.format(package=name)
    return PYPI_VERSION_JSON_API.format(package=name, version=version_selector)


class PyPIMetadataSource:
    """:class:`MetadataSource` backed by the PyPI JSON API.

    Args:
        http_client: A pre-configured :class:`HTTPClient` (owns the
            connection pool).
        cache: Optional store for raw response bodies. Entries that do not
            decode to a JSON object are ignored and refetched.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        cache: Optional[CacheStore] = None,
    ) -> None:
        self.http_client = http_client
        self.cache = cache

    async def fetch(self, name: str, version_selector: str = LATEST_SELECTOR) -> Package:
        url = build_metadata_url(name, version_selector)

        data = self._read_cache(url)
        if data is None:
            body = await self._download(name, url)
            data = _decode(body)
            if data is None:
                raise PyPIError(
                    f"Invalid metadata response for '{name}'",
                    package_name=name,
                    url=url,
                )
            self._write_cache(url, body)

        info = data.get("info")
        if not isinstance(info, dict):
            raise PyPIError(
                f"Metadata for '{name}' has no 'info' object",
                package_name=name,
                url=url,
            )

        package = Package.from_pypi_info(info, fallback_name=name)
        if not package.version:
            raise PyPIError(
                f"Metadata for '{name}' has no version",
                package_name=name,
                url=url,
            )

        return package

    def _read_cache(self, url: str) -> Optional[Dict[str, Any]]:
        if self.cache is None:
            return None

        body = self.cache.get(url)
        if body is None:
            return None

        data = _decode(body)
        if data is None:
            logger.debug("Ignoring corrupt cache entry for %s", url)
            return None

        logger.debug("Metadata cache hit for %s", url)
        return data

    def _write_cache(self, url: str, body: bytes) -> None:
        if self.cache is None:
            return

        try:
            self.cache.set(url, body)
        except (FileOperationError, OSError) as exc:
            logger.warning("Could not cache metadata for %s: %s", url, exc)

    async def _download(self, name: str, url: str) -> bytes:
        try:
            return await self.http_client.get_bytes(url)
        except PyPIError as exc:
            exc.package_name = name
            exc.details["package"] = name
            raise
        except NetworkError as exc:
            raise PyPIError(
                f"Failed to fetch metadata for '{name}': {exc.message}",
                package_name=name,
                url=url,
                status_code=exc.status_code,
            ) from exc


def _decode(body: bytes) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None
