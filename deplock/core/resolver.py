"""Concurrent dependency resolver for deplock.

The resolver turns a list of top-level requirements into a flat, ordered
list of concrete :class:`~deplock.models.package.Package` records by walking
the dependency graph breadth-first:

1. Up to ``max_concurrent`` not-yet-visited requirements are drained from a
   FIFO queue into a batch. Each name is marked visited *before* it is
   fetched, so every package name is fetched at most once per call to
   :meth:`Resolver.resolve`, even when it is reachable along several paths.
2. The batch is fetched concurrently from the :class:`MetadataSource`
   (always the newest release). Names already held in the package cache
   are served from it.
3. Results are applied in batch order. A package is **dropped** (logged,
   not raised) when the fetch failed, when its version does not satisfy the
   requirement that led to it, or when it violates a constraint set with
   :meth:`Resolver.set_constraints`. A dropped package's dependencies are
   not explored.
4. Accepted packages have their ``requires_dist`` expanded; dependencies
   whose environment marker is false for the target environment are
   skipped, the rest are queued.

This is a first-wins walk, not a backtracking solver: whichever requirement
for a name is dequeued first decides whether that name is accepted, and
later, conflicting demands for the same name are never reconsidered.

Typical usage::

    async with HTTPClient() as client:
        resolver = Resolver(PyPIMetadataSource(client))
        packages = await resolver.resolve(["requests>=2.28"])
"""

from __future__ import annotations

import re
import asyncio
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Set, Tuple, Union

from deplock.constants import DEFAULT_MAX_CONCURRENT, LATEST_SELECTOR
from deplock.core.dependency_cache import CacheStats, DependencyCache, VersionCache
from deplock.core.markers import MarkerEvaluator
from deplock.core.metadata_source import MetadataSource
from deplock.exceptions import InvalidRequirement
from deplock.models.environment import Environment
from deplock.models.package import Package
from deplock.models.requirement import Requirement, normalize_name
from deplock.utils.logger import get_logger
from deplock.utils.version_utils import satisfies_all

logger = get_logger("resolver")

# Public API
__all__ = ["Resolver", "RequirementLike"]

RequirementLike = Union[Requirement, str]

_FetchResult = Union[Package, BaseException]

_EXTRA_MARKER = re.compile(r"""\bextra\s*==\s*["']([^"']+)["']""")


class Resolver:
    """Breadth-first, bounded-concurrency dependency resolver.

    Args:
        metadata_source: Where package records come from.
        environment: Target environment for marker evaluation. Defaults to
            the running interpreter.
        max_concurrent: Batch size and the number of fetches allowed in
            flight at once.

    State lifetime:
        - the visited set is reset at the start of every :meth:`resolve`;
        - the package, dependency and version caches persist across calls
          until :meth:`clear_cache`;
        - constraints persist until replaced or cleared.
    """

    def __init__(
        self,
        metadata_source: MetadataSource,
        environment: Optional[Environment] = None,
        *,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.metadata_source = metadata_source
        self.environment = environment or Environment.current()
        self.max_concurrent = max_concurrent

        self._markers = MarkerEvaluator(self.environment)
        self._semaphore: Optional[asyncio.Semaphore] = None

        self._package_cache: Dict[str, Package] = {}
        self._constraints: Dict[str, List[Requirement]] = {}
        self._visited: Set[str] = set()

        self.dependency_cache = DependencyCache()
        self.version_cache = VersionCache()

    @classmethod
    def with_environment(
        cls,
        metadata_source: MetadataSource,
        environment: Environment,
        *,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
    ) -> "Resolver":
        """Build a resolver for an explicit target environment."""
        return cls(metadata_source, environment, max_concurrent=max_concurrent)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_constraints(self, constraints: Iterable[RequirementLike]) -> None:
        """Replace the constraint set.

        Constraints never add packages; they only reject fetched packages
        whose version fails any constraint given for the same name. Passing
        an empty iterable clears them.

        Raises:
            InvalidRequirement: A constraint string cannot be parsed.
        """
        grouped: Dict[str, List[Requirement]] = {}
        for requirement in _parse_all(constraints):
            grouped.setdefault(requirement.name, []).append(requirement)

        self._constraints = grouped
        logger.debug("Constraints set for %d package(s)", len(grouped))

    @property
    def constraints(self) -> Dict[str, List[Requirement]]:
        return {name: list(reqs) for name, reqs in self._constraints.items()}

    def clear_cache(self) -> None:
        """Forget every fetched package and memoized parse result."""
        self._package_cache.clear()
        self.dependency_cache.clear()
        self.version_cache.clear()

    def cache_stats(self) -> Dict[str, CacheStats]:
        return {
            "dependencies": self.dependency_cache.stats(),
            "versions": self.version_cache.stats(),
        }

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, requirements: Iterable[RequirementLike]) -> List[Package]:
        """Resolve *requirements* and their transitive dependencies.

        Args:
            requirements: :class:`Requirement` objects or requirement
                strings. Strings are all parsed before anything is fetched.

        Returns:
            Accepted packages, in the order they were accepted.

        Raises:
            InvalidRequirement: A requirement string cannot be parsed.
        """
        queue: Deque[Requirement] = deque(_parse_all(requirements))
        self._visited = set()
        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        resolved: List[Package] = []

        while queue:
            batch = self._next_batch(queue)
            if not batch:
                continue

            logger.debug(
                "Fetching batch of %d: %s",
                len(batch),
                ", ".join(req.name for req in batch),
            )

            results = await asyncio.gather(
                *(self._fetch(req.name) for req in batch),
                return_exceptions=True,
            )

            for requirement, result in zip(batch, results):
                package = self._accept(requirement, result)
                if package is None:
                    continue

                resolved.append(package)
                queue.extend(self._expand(package))

        logger.info("Resolved %d package(s)", len(resolved))
        return resolved

    def _next_batch(self, queue: Deque[Requirement]) -> List[Requirement]:
        """Drain up to ``max_concurrent`` unvisited requirements, marking them."""
        batch: List[Requirement] = []

        while queue and len(batch) < self.max_concurrent:
            requirement = queue.popleft()
            if requirement.name in self._visited:
                continue
            self._visited.add(requirement.name)
            batch.append(requirement)

        return batch

    async def _fetch(self, name: str) -> Package:
        cached = self._package_cache.get(name)
        if cached is not None:
            logger.debug("Package cache hit for %s", name)
            return cached

        assert self._semaphore is not None
        async with self._semaphore:
            return await self.metadata_source.fetch(name, LATEST_SELECTOR)

    def _accept(self, requirement: Requirement, result: _FetchResult) -> Optional[Package]:
        """Apply one fetch result; return the package if it is kept."""
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning("Failed to fetch %s: %s", requirement.name, result)
            return None

        package = result

        if not satisfies_all(package.version, requirement.specs, self.version_cache):
            logger.warning(
                "Skipping %s %s: does not satisfy %s",
                package.name,
                package.version,
                requirement.spec_string,
            )
            return None

        constraint_failure = self._violated_constraint(package)
        if constraint_failure is not None:
            logger.warning(
                "Skipping %s %s: violates constraint %s",
                package.name,
                package.version,
                constraint_failure,
            )
            return None

        self._package_cache[requirement.name] = package
        return package

    def _violated_constraint(self, package: Package) -> Optional[Requirement]:
        for constraint in self._constraints.get(normalize_name(package.name), []):
            if not satisfies_all(package.version, constraint.specs, self.version_cache):
                return constraint
        return None

    def _expand(self, package: Package) -> List[Requirement]:
        """Return the unvisited dependencies of *package* that apply here."""
        dependencies, _ = self._dependencies_of(package)

        queued: List[Requirement] = []
        for dependency in dependencies:
            if not self._markers.evaluate(dependency.marker):
                logger.debug(
                    "Skipping %s for %s: marker %r is false",
                    dependency.name,
                    package.name,
                    dependency.marker,
                )
                continue
            if dependency.name not in self._visited:
                queued.append(dependency)

        return queued

    def _dependencies_of(self, package: Package) -> Tuple[List[Requirement], List[str]]:
        cached = self.dependency_cache.get(package.name, package.version)
        if cached is not None:
            return cached.dependencies, cached.extras

        dependencies: List[Requirement] = []
        extras: Set[str] = set()

        for raw in package.requires_dist:
            try:
                dependency = Requirement.parse(raw)
            except InvalidRequirement as exc:
                logger.warning("Ignoring dependency of %s: %s", package.name, exc)
                continue
            dependencies.append(dependency)
            extra = _extra_from_marker(dependency.marker)
            if extra:
                extras.add(extra)

        extra_list = sorted(extras)
        self.dependency_cache.set(package.name, package.version, dependencies, extra_list)
        return dependencies, extra_list


def _extra_from_marker(marker: Optional[str]) -> Optional[str]:
    """Return the extra named by an ``extra == 'name'`` marker, if any."""
    if not marker:
        return None
    match = _EXTRA_MARKER.search(marker)
    return normalize_name(match.group(1)) if match else None


def _parse_all(requirements: Iterable[RequirementLike]) -> List[Requirement]:
    return [
        req if isinstance(req, Requirement) else Requirement.parse(req)
        for req in requirements
    ]
