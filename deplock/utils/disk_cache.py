"""
On-disk TTL cache for raw metadata responses.

Keys are arbitrary strings (the metadata source uses request URLs). Each key
is hashed with SHA-256 and stored as ``<root>/<first two hex chars>/<hash>``
so no single directory grows too large. An entry older than the TTL, judged
by file modification time, is a miss and is deleted on access.

Implements the ``CacheStore`` protocol from
:mod:`deplock.core.metadata_source`.
"""

from __future__ import annotations

import os
import time
import shutil
import hashlib
from pathlib import Path
from dataclasses import dataclass
from typing import Optional, Union

from deplock.constants import CACHE_DIR_NAME, DEFAULT_CACHE_TTL
from deplock.utils.filesystem import atomic_write_bytes
from deplock.utils.logger import get_logger

logger = get_logger("disk_cache")


def default_cache_dir() -> Path:
    """Return the per-user cache directory (``$XDG_CACHE_HOME/deplock``)."""
    base = os.environ.get("XDG_CACHE_HOME")
    root = Path(base) if base else Path.home() / ".cache"
    return root / CACHE_DIR_NAME


@dataclass
class DiskCacheStats:
    """Entry count and total size in bytes."""

    count: int = 0
    size: int = 0


class DiskCache:
    """Byte-oriented key/value cache with a time-to-live.

    Args:
        cache_dir: Root directory; created lazily on first write.
        ttl: Entry lifetime in seconds.

    Example:
        >>> cache = DiskCache(tmp_path, ttl=60)
        >>> cache.set("https://pypi.org/pypi/requests/json", b"{}")
        >>> cache.get("https://pypi.org/pypi/requests/json")
        b'{}'
    """

    def __init__(
        self,
        cache_dir: Optional[Union[str, Path]] = None,
        ttl: int = DEFAULT_CACHE_TTL,
    ) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else default_cache_dir()
        self.ttl = ttl

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.cache_dir / digest[:2] / digest

    def get(self, key: str) -> Optional[bytes]:
        """Return the cached bytes for *key*, or ``None`` if absent or expired."""
        path = self._path_for(key)

        try:
            age = time.time() - path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Failed to stat cache entry %s: %s", path, exc)
            return None

        if age > self.ttl:
            logger.debug("Cache entry expired for %s (age %.0fs)", key, age)
            try:
                path.unlink()
            except OSError as exc:
                logger.debug("Could not evict expired entry %s: %s", path, exc)
            return None

        try:
            return path.read_bytes()
        except OSError as exc:
            logger.warning("Failed to read cache entry %s: %s", path, exc)
            return None

    def set(self, key: str, value: bytes) -> None:
        """Store *value* under *key*, replacing any previous entry."""
        atomic_write_bytes(self._path_for(key), value)
        logger.debug("Cached %d bytes for %s", len(value), key)

    def delete(self, key: str) -> bool:
        """Remove *key*; return True if an entry existed."""
        try:
            self._path_for(key).unlink()
            return True
        except FileNotFoundError:
            return False

    def clear(self) -> None:
        """Remove every entry."""
        if self.cache_dir.exists():
            shutil.rmtree(self.cache_dir)
        logger.debug("Cleared disk cache at %s", self.cache_dir)

    def stats(self) -> DiskCacheStats:
        stats = DiskCacheStats()
        if not self.cache_dir.exists():
            return stats

        for path in self.cache_dir.rglob("*"):
            if path.is_file() and not path.name.startswith("."):
                stats.count += 1
                stats.size += path.stat().st_size

        return stats
