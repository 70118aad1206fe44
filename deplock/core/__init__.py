"""
Core functionality exports for deplock.

This module provides convenient access to the core subsystems of deplock.
Importing from here keeps user-facing imports clean and stable:

    from deplock.core import Resolver, PyPIMetadataSource
"""

from __future__ import annotations

from deplock.core.markers import MarkerEvaluator, evaluate_marker
from deplock.core.dependency_cache import (
    CacheStats,
    CachedDependencies,
    DependencyCache,
    VersionCache,
)
from deplock.core.candidate_selector import (
    Candidate,
    CandidateSelector,
    CandidateStats,
    SelectionStrategy,
)
from deplock.core.metadata_source import CacheStore, MetadataSource, PyPIMetadataSource
from deplock.core.resolver import Resolver
from deplock.core.lockfile import LockFile, LockedPackage
from deplock.core.parser import RequirementsParser
from deplock.core.installed import build_installed_selector, iter_installed_packages

__all__ = [
    "CacheStats",
    "CacheStore",
    "CachedDependencies",
    "Candidate",
    "CandidateSelector",
    "CandidateStats",
    "DependencyCache",
    "LockFile",
    "LockedPackage",
    "MarkerEvaluator",
    "MetadataSource",
    "PyPIMetadataSource",
    "RequirementsParser",
    "Resolver",
    "SelectionStrategy",
    "VersionCache",
    "build_installed_selector",
    "evaluate_marker",
    "iter_installed_packages",
]
