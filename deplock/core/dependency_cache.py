"""In-memory memoization for one resolver instance.

Two caches live here:

- :class:`DependencyCache` maps ``name==version`` to the parsed dependency
  list of that release, so a package reached again (in a later ``resolve``
  call on the same resolver) does not re-parse its ``requires_dist``.
- :class:`VersionCache` maps a literal version string to its numeric
  components. Entries are tuples and are never replaced once inserted.

Neither cache evicts or expires entries; both live exactly as long as their
owner, or until :meth:`clear`.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from deplock.models.requirement import Requirement
from deplock.utils.logger import get_logger
from deplock.utils.version_utils import parse_version_parts

logger = get_logger("dependency_cache")

__all__ = ["CacheStats", "CachedDependencies", "DependencyCache", "VersionCache"]


@dataclass
class CacheStats:
    """Hit/miss counters of a cache.

    Attributes:
        hits: Lookups that found an entry.
        misses: Lookups that did not.
        total: ``hits + misses``.
        hit_rate: ``hits / total * 100``, or ``0.0`` before any lookup.
        size: Number of distinct entries.
    """

    hits: int = 0
    misses: int = 0
    total: int = 0
    hit_rate: float = 0.0
    size: int = 0

    @classmethod
    def compute(cls, hits: int, misses: int, size: int) -> "CacheStats":
        total = hits + misses
        hit_rate = (hits / total) * 100.0 if total else 0.0
        return cls(hits=hits, misses=misses, total=total, hit_rate=hit_rate, size=size)


@dataclass
class CachedDependencies:
    """Parsed dependencies of one release."""

    package_name: str
    version: str
    dependencies: List[Requirement] = field(default_factory=list)
    extras: List[str] = field(default_factory=list)


def _cache_key(package_name: str, version: str) -> str:
    return f"{package_name.lower()}=={version}"


class DependencyCache:
    """Memo of parsed dependency lists keyed by lowercase ``name==version``.

    :meth:`get` hands out deep copies so callers may mutate what they
    receive without corrupting the cache.

    Example::

        >>> cache = DependencyCache()
        >>> cache.get("requests", "2.31.0") is None
        True
        >>> cache.set("requests", "2.31.0", [], [])
        >>> cache.get("Requests", "2.31.0").package_name
        'requests'
        >>> cache.stats().hit_rate
        50.0
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CachedDependencies] = {}
        self._hits = 0
        self._misses = 0

    def get(self, package_name: str, version: str) -> Optional[CachedDependencies]:
        key = _cache_key(package_name, version)
        entry = self._entries.get(key)

        if entry is None:
            self._misses += 1
            return None

        self._hits += 1
        logger.debug("Dependency cache hit for %s (%d hits total)", key, self._hits)
        return copy.deepcopy(entry)

    def set(
        self,
        package_name: str,
        version: str,
        dependencies: List[Requirement],
        extras: List[str],
    ) -> None:
        key = _cache_key(package_name, version)
        self._entries[key] = CachedDependencies(
            package_name=package_name,
            version=version,
            dependencies=list(dependencies),
            extras=list(extras),
        )
        logger.debug("Cached dependencies for %s", key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> CacheStats:
        return CacheStats.compute(self._hits, self._misses, len(self._entries))

    def clear(self) -> None:
        """Drop all entries and reset the counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        logger.debug("Dependency cache cleared")


class VersionCache:
    """Memo of parsed version strings.

    The key is the literal string, so ``"1.0"`` and ``"1.0.0"`` are separate
    entries even though they compare equal.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[int, ...]] = {}
        self._hits = 0
        self._misses = 0

    def parse(self, version: str) -> Tuple[int, ...]:
        """Return the numeric components of *version*, parsing at most once."""
        cached = self._entries.get(version)
        if cached is not None:
            self._hits += 1
            return cached

        self._misses += 1
        parts = parse_version_parts(version)
        self._entries[version] = parts
        return parts

    def get(self, version: str) -> Optional[Tuple[int, ...]]:
        """Return the cached components without parsing (``None`` on a miss)."""
        cached = self._entries.get(version)
        if cached is None:
            self._misses += 1
        else:
            self._hits += 1
        return cached

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> CacheStats:
        return CacheStats.compute(self._hits, self._misses, len(self._entries))

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0
