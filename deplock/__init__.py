"""
deplock: dependency resolution and lock files for Python projects.

deplock resolves requested requirements into a concrete, ordered set of
packages, honoring version constraints, constraint files and environment
markers, and freezes the result into a JSON lock file.

    >>> import asyncio
    >>> from deplock import HTTPClient, PyPIMetadataSource, Resolver
    >>> async def main():
    ...     async with HTTPClient() as client:
    ...         resolver = Resolver(PyPIMetadataSource(client))
    ...         return await resolver.resolve(["requests>=2.28"])
    >>> packages = asyncio.run(main())
"""

from __future__ import annotations

from deplock.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "deplock Contributors"
__license__ = "Apache-2.0"
__description__ = "Concurrent dependency resolver and lock file generator for Python."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

from deplock.models import Environment, Package, Requirement, VersionOp, VersionSpec
from deplock.core import (
    CandidateSelector,
    DependencyCache,
    LockFile,
    MarkerEvaluator,
    PyPIMetadataSource,
    RequirementsParser,
    Resolver,
    SelectionStrategy,
    VersionCache,
    evaluate_marker,
)
from deplock.exceptions import DepLockError, InvalidRequirement, LockFileError
from deplock.utils.http import HTTPClient

__all__ = [
    "__version__",
    "CandidateSelector",
    "DepLockError",
    "DependencyCache",
    "Environment",
    "HTTPClient",
    "InvalidRequirement",
    "LockFile",
    "LockFileError",
    "MarkerEvaluator",
    "Package",
    "PyPIMetadataSource",
    "Requirement",
    "RequirementsParser",
    "Resolver",
    "SelectionStrategy",
    "VersionCache",
    "VersionOp",
    "VersionSpec",
    "evaluate_marker",
]
