"""Unit tests for deplock.core.dependency_cache."""

from __future__ import annotations

import pytest

from deplock.core.dependency_cache import CacheStats, DependencyCache, VersionCache
from deplock.models.requirement import Requirement


@pytest.mark.unit
class TestCacheStats:
    def test_empty(self) -> None:
        """No lookups means a zero hit rate rather than a division error."""
        stats = CacheStats.compute(0, 0, 0)

        assert stats.total == 0
        assert stats.hit_rate == 0.0

    def test_rate(self) -> None:
        stats = CacheStats.compute(3, 1, 2)

        assert stats.total == 4
        assert stats.hit_rate == 75.0


@pytest.mark.unit
class TestDependencyCache:
    """Tests for DependencyCache."""

    def test_miss_then_hit(self) -> None:
        """One miss and one hit give a 50% hit rate."""
        cache = DependencyCache()

        assert cache.get("requests", "2.31.0") is None
        cache.set("requests", "2.31.0", [Requirement.parse("idna<4")], [])
        entry = cache.get("requests", "2.31.0")

        assert entry is not None
        assert entry.dependencies == [Requirement.parse("idna<4")]

        stats = cache.stats()
        assert (stats.hits, stats.misses, stats.total, stats.hit_rate) == (1, 1, 2, 50.0)
        assert stats.size == 1

    def test_key_is_case_insensitive(self) -> None:
        cache = DependencyCache()
        cache.set("Django", "4.2", [], ["argon2"])

        assert cache.get("django", "4.2") is not None
        assert "DJANGO==4.2" in cache
        assert "django==5.0" not in cache

    def test_get_returns_independent_copy(self) -> None:
        """Mutating a returned entry does not change the cache."""
        cache = DependencyCache()
        cache.set("a", "1.0", [Requirement.parse("b>=1")], ["extra1"])

        first = cache.get("a", "1.0")
        assert first is not None
        first.dependencies[0].specs.clear()
        first.dependencies.append(Requirement.parse("c"))
        first.extras.append("mutated")

        second = cache.get("a", "1.0")
        assert second is not None
        assert second.dependencies == [Requirement.parse("b>=1")]
        assert second.extras == ["extra1"]

    def test_set_copies_input_lists(self) -> None:
        """The caller's lists can be reused after set."""
        cache = DependencyCache()
        deps = [Requirement.parse("b")]
        cache.set("a", "1.0", deps, [])
        deps.append(Requirement.parse("c"))

        entry = cache.get("a", "1.0")
        assert entry is not None
        assert len(entry.dependencies) == 1

    def test_clear_resets_counters(self) -> None:
        cache = DependencyCache()
        cache.set("a", "1.0", [], [])
        cache.get("a", "1.0")

        cache.clear()

        assert len(cache) == 0
        assert cache.stats() == CacheStats()


@pytest.mark.unit
class TestVersionCache:
    """Tests for VersionCache."""

    def test_parse_memoizes(self) -> None:
        """The first parse is a miss; repeats are hits."""
        cache = VersionCache()

        assert cache.parse("1.2.3") == (1, 2, 3)
        assert cache.parse("1.2.3") == (1, 2, 3)

        stats = cache.stats()
        assert (stats.hits, stats.misses, stats.size) == (1, 1, 1)

    def test_literal_strings_are_distinct_keys(self) -> None:
        cache = VersionCache()
        cache.parse("1.0")
        cache.parse("1.0.0")

        assert len(cache) == 2

    def test_get_does_not_parse(self) -> None:
        cache = VersionCache()

        assert cache.get("1.0") is None
        cache.parse("1.0")
        assert cache.get("1.0") == (1, 0)

    def test_clear(self) -> None:
        cache = VersionCache()
        cache.parse("1.0")

        cache.clear()

        assert len(cache) == 0
        assert cache.stats().total == 0
