"""
Unified data model exports for deplock.

Example:
    >>> from deplock.models import Environment, Package, Requirement
"""

from __future__ import annotations

from deplock.models.package import Package
from deplock.models.environment import Environment
from deplock.models.requirement import (
    Requirement,
    VersionOp,
    VersionSpec,
    normalize_name,
    parse_requirement,
)

__all__ = [
    "Environment",
    "Package",
    "Requirement",
    "VersionOp",
    "VersionSpec",
    "normalize_name",
    "parse_requirement",
]
