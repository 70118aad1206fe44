"""Unit tests for deplock.core.resolver.

An in-memory metadata source stands in for PyPI so every scenario is
deterministic and counts exactly how often each name is fetched.

Test Coverage:
- Breadth-first expansion and acceptance order
- Each name fetched at most once per resolve call
- Marker gating against the target environment
- Dropping packages on version mismatch, constraint violation, fetch failure
- Batch size / concurrency bound
- Cache lifetime across resolve calls
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

import pytest

from deplock.core.resolver import Resolver
from deplock.exceptions import InvalidRequirement, PyPIError
from deplock.models.environment import Environment
from deplock.models.package import Package
from deplock.models.requirement import Requirement


# ============================================================================
# Test doubles
# ============================================================================


class FakeMetadataSource:
    """MetadataSource serving fixed packages and recording every fetch."""

    def __init__(self, packages: List[Package], delay: float = 0.0) -> None:
        self.packages: Dict[str, Package] = {p.name: p for p in packages}
        self.delay = delay
        self.calls: List[str] = []
        self.selectors: List[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self.error: Optional[BaseException] = None

    async def fetch(self, name: str, version_selector: str) -> Package:
        self.calls.append(name)
        self.selectors.append(version_selector)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            if name not in self.packages:
                raise PyPIError(f"Resource not found: {name}", package_name=name, status_code=404)
            return self.packages[name]
        finally:
            self.in_flight -= 1


def _pkg(name: str, version: str, *requires: str) -> Package:
    return Package(name, version, requires_dist=list(requires))


LINUX = Environment(python_version="3.11", platform="linux")
WINDOWS = Environment(python_version="3.11", platform="win32", os_name="nt")


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def graph() -> List[Package]:
    """A small graph with a platform-specific edge and an extra.

    app 1.0 -> web>=2.0, pywin32 (win32 only)
    web 2.1 -> util>=1.0, socksio (extra "socks")
    util 1.2
    pywin32 306
    socksio 1.0
    """
    return [
        _pkg("app", "1.0", "web>=2.0", "pywin32>=300; sys_platform == 'win32'"),
        _pkg("web", "2.1", "util>=1.0", "socksio; extra == 'socks'"),
        _pkg("util", "1.2"),
        _pkg("pywin32", "306"),
        _pkg("socksio", "1.0"),
    ]


@pytest.fixture
def source(graph: List[Package]) -> FakeMetadataSource:
    return FakeMetadataSource(graph)


def _names(packages: List[Package]) -> List[str]:
    return [p.name for p in packages]


# ============================================================================
# Construction
# ============================================================================


@pytest.mark.unit
class TestResolverInit:
    """Tests for Resolver construction."""

    def test_defaults_to_current_environment(self, source: FakeMetadataSource) -> None:
        resolver = Resolver(source)

        assert resolver.environment == Environment.current()
        assert resolver.max_concurrent == 10

    def test_with_environment(self, source: FakeMetadataSource) -> None:
        resolver = Resolver.with_environment(source, WINDOWS, max_concurrent=3)

        assert resolver.environment is WINDOWS
        assert resolver.max_concurrent == 3

    @pytest.mark.parametrize("value", [0, -1])
    def test_rejects_non_positive_concurrency(self, source: FakeMetadataSource, value: int) -> None:
        with pytest.raises(ValueError):
            Resolver(source, LINUX, max_concurrent=value)


# ============================================================================
# Resolution
# ============================================================================


@pytest.mark.unit
class TestResolve:
    """End-to-end resolution against the fake source."""

    @pytest.mark.asyncio
    async def test_linux_walk(self, source: FakeMetadataSource) -> None:
        """On linux the win32-only edge and the extra-only edge are skipped."""
        resolver = Resolver(source, LINUX)

        packages = await resolver.resolve(["app"])

        assert _names(packages) == ["app", "web", "util"]
        assert sorted(source.calls) == ["app", "util", "web"]
        assert set(source.selectors) == {"latest"}

    @pytest.mark.asyncio
    async def test_windows_walk(self, source: FakeMetadataSource) -> None:
        """On win32 the platform-specific dependency is included."""
        resolver = Resolver(source, WINDOWS)

        packages = await resolver.resolve(["app"])

        assert _names(packages) == ["app", "web", "pywin32", "util"]

    @pytest.mark.asyncio
    async def test_single_package_without_dependencies(self, source: FakeMetadataSource) -> None:
        resolver = Resolver(source, WINDOWS)

        packages = await resolver.resolve(["util"])

        assert _names(packages) == ["util"]
        assert source.calls == ["util"]

    @pytest.mark.asyncio
    async def test_empty_input(self, source: FakeMetadataSource) -> None:
        assert await Resolver(source, LINUX).resolve([]) == []
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_duplicate_names_fetched_once(self, source: FakeMetadataSource) -> None:
        """The first requirement for a name wins; later ones are ignored."""
        resolver = Resolver(source, LINUX)

        packages = await resolver.resolve(["util", "util>=1.0", "util<1.0"])

        assert _names(packages) == ["util"]
        assert source.calls == ["util"]

    @pytest.mark.asyncio
    async def test_shared_dependency_fetched_once(self) -> None:
        """A diamond graph fetches the shared leaf a single time."""
        source = FakeMetadataSource(
            [
                _pkg("left", "1.0", "leaf"),
                _pkg("right", "1.0", "leaf>=1"),
                _pkg("leaf", "1.0"),
            ]
        )

        packages = await Resolver(source, LINUX).resolve(["left", "right"])

        assert _names(packages) == ["left", "right", "leaf"]
        assert source.calls.count("leaf") == 1

    @pytest.mark.asyncio
    async def test_accepts_requirement_objects(self, source: FakeMetadataSource) -> None:
        packages = await Resolver(source, LINUX).resolve([Requirement.parse("util>=1")])

        assert _names(packages) == ["util"]

    @pytest.mark.asyncio
    async def test_invalid_string_raises_before_fetching(self, source: FakeMetadataSource) -> None:
        """All strings are parsed up front."""
        with pytest.raises(InvalidRequirement):
            await Resolver(source, LINUX).resolve(["util", "bad=>1"])

        assert source.calls == []

    @pytest.mark.asyncio
    async def test_unparseable_dependency_is_ignored(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A broken requires_dist entry is logged and skipped."""
        source = FakeMetadataSource([_pkg("a", "1.0", "[broken", "b"), _pkg("b", "1.0")])

        with caplog.at_level(logging.WARNING, logger="deplock"):
            packages = await Resolver(source, LINUX).resolve(["a"])

        assert _names(packages) == ["a", "b"]
        assert "Ignoring dependency of a" in caplog.text


# ============================================================================
# Dropping
# ============================================================================


@pytest.mark.unit
class TestDropping:
    """Packages that cannot be used are omitted, never raised."""

    @pytest.mark.asyncio
    async def test_version_mismatch(
        self, source: FakeMetadataSource, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A root whose newest version fails its clause is dropped with its subtree."""
        with caplog.at_level(logging.WARNING, logger="deplock"):
            packages = await Resolver(source, LINUX).resolve(["web>=3.0", "util"])

        assert _names(packages) == ["util"]
        assert "does not satisfy >=3.0" in caplog.text

    @pytest.mark.asyncio
    async def test_transitive_mismatch_keeps_parent(self) -> None:
        source = FakeMetadataSource([_pkg("a", "1.0", "b>=2"), _pkg("b", "1.5")])

        packages = await Resolver(source, LINUX).resolve(["a"])

        assert _names(packages) == ["a"]

    @pytest.mark.asyncio
    async def test_constraint_violation(self, source: FakeMetadataSource) -> None:
        """Constraints filter fetched packages but never add any."""
        resolver = Resolver(source, LINUX)
        resolver.set_constraints(["util<1.0", "unrelated==9.9"])

        packages = await resolver.resolve(["app"])

        assert _names(packages) == ["app", "web"]
        assert "unrelated" not in source.calls

    @pytest.mark.asyncio
    async def test_constraint_satisfied(self, source: FakeMetadataSource) -> None:
        resolver = Resolver(source, LINUX)
        resolver.set_constraints([Requirement.parse("util>=1.0,<2")])

        packages = await resolver.resolve(["util"])

        assert _names(packages) == ["util"]

    @pytest.mark.asyncio
    async def test_fetch_failure_is_skipped(
        self, source: FakeMetadataSource, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A name the source does not know is logged and omitted."""
        with caplog.at_level(logging.WARNING, logger="deplock"):
            packages = await Resolver(source, LINUX).resolve(["missing", "util"])

        assert _names(packages) == ["util"]
        assert "Failed to fetch missing" in caplog.text

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, source: FakeMetadataSource) -> None:
        """Non-Exception failures such as cancellation are not swallowed."""
        source.error = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await Resolver(source, LINUX).resolve(["util"])


# ============================================================================
# Concurrency
# ============================================================================


@pytest.mark.unit
class TestConcurrency:
    """Batching and the in-flight bound."""

    @pytest.mark.asyncio
    async def test_in_flight_never_exceeds_limit(self) -> None:
        roots = [_pkg(f"pkg{i}", "1.0") for i in range(7)]
        source = FakeMetadataSource(roots, delay=0.01)

        packages = await Resolver(source, LINUX, max_concurrent=3).resolve(
            [p.name for p in roots]
        )

        assert len(packages) == 7
        assert source.peak_in_flight == 3

    @pytest.mark.asyncio
    async def test_results_applied_in_batch_order(self) -> None:
        """Acceptance order follows queue order, not completion order."""
        roots = [_pkg(f"pkg{i}", "1.0") for i in range(4)]
        source = FakeMetadataSource(roots)

        packages = await Resolver(source, LINUX, max_concurrent=4).resolve(
            ["pkg3", "pkg1", "pkg0", "pkg2"]
        )

        assert _names(packages) == ["pkg3", "pkg1", "pkg0", "pkg2"]

    @pytest.mark.asyncio
    async def test_batch_of_one_is_sequential(self, source: FakeMetadataSource) -> None:
        packages = await Resolver(source, WINDOWS, max_concurrent=1).resolve(["app"])

        assert source.peak_in_flight == 1
        assert _names(packages) == ["app", "web", "pywin32", "util"]


# ============================================================================
# Cache lifetime
# ============================================================================


@pytest.mark.unit
class TestCaches:
    """Package and dependency caches persist between resolve calls."""

    @pytest.mark.asyncio
    async def test_second_resolve_uses_package_cache(self, source: FakeMetadataSource) -> None:
        resolver = Resolver(source, LINUX)

        first = await resolver.resolve(["app"])
        second = await resolver.resolve(["app"])

        assert _names(first) == _names(second)
        assert len(source.calls) == 3

    @pytest.mark.asyncio
    async def test_clear_cache_forces_refetch(self, source: FakeMetadataSource) -> None:
        resolver = Resolver(source, LINUX)
        await resolver.resolve(["util"])

        resolver.clear_cache()
        await resolver.resolve(["util"])

        assert source.calls == ["util", "util"]
        assert resolver.cache_stats()["dependencies"].size == 1

    @pytest.mark.asyncio
    async def test_dependency_cache_records_extras(self, source: FakeMetadataSource) -> None:
        """Extras a release provides are collected from its markers."""
        resolver = Resolver(source, LINUX)
        await resolver.resolve(["web"])

        entry = resolver.dependency_cache.get("web", "2.1")

        assert entry is not None
        assert entry.extras == ["socks"]
        assert [d.name for d in entry.dependencies] == ["util", "socksio"]

    @pytest.mark.asyncio
    async def test_cache_stats_shape(self, source: FakeMetadataSource) -> None:
        resolver = Resolver(source, LINUX)
        await resolver.resolve(["app"])
        await resolver.resolve(["app"])

        stats = resolver.cache_stats()

        assert set(stats) == {"dependencies", "versions"}
        assert stats["dependencies"].hits == 3
        assert stats["versions"].size > 0

    def test_constraints_property_is_a_copy(self, source: FakeMetadataSource) -> None:
        resolver = Resolver(source, LINUX)
        resolver.set_constraints(["util<2", "util>=1", "Web==2.1"])

        constraints = resolver.constraints
        constraints["util"].clear()

        assert sorted(resolver.constraints) == ["util", "web"]
        assert len(resolver.constraints["util"]) == 2

    def test_empty_constraints_clear(self, source: FakeMetadataSource) -> None:
        resolver = Resolver(source, LINUX)
        resolver.set_constraints(["util<2"])

        resolver.set_constraints([])

        assert resolver.constraints == {}
