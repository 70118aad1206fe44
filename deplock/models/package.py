"""
Package data model for deplock.

A :class:`Package` is one concrete release as described by a metadata
source: its name, version, and the raw ``requires_dist`` strings that the
resolver re-parses while expanding the dependency graph.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from packaging.specifiers import InvalidSpecifier, SpecifierSet

from deplock.models.requirement import normalize_name


@dataclass
class Package:
    """
    A single resolved release.

    Attributes:
        name: Normalized package name.
        version: Release version string.
        summary: One-line description, if published.
        requires_python: ``Requires-Python`` specifier, if published.
        requires_dist: Raw dependency strings (PEP 508 style).
        classifiers: Trove classifiers.
        home_page: Project home page URL.
        author: Author name.
        license: License string.
    """

    name: str
    version: str
    summary: Optional[str] = None
    requires_python: Optional[str] = None
    requires_dist: List[str] = field(default_factory=list)
    classifiers: List[str] = field(default_factory=list)
    home_page: Optional[str] = None
    author: Optional[str] = None
    license: Optional[str] = None

    def __post_init__(self) -> None:
        self.name = normalize_name(self.name)

    @property
    def key(self) -> str:
        """``name==version`` identifier used by caches and selectors."""
        return f"{self.name}=={self.version}"

    def is_python_compatible(self, python_version: str) -> bool:
        """Check ``requires_python`` against a target interpreter version.

        Missing or malformed specifiers are treated as compatible, which is
        what pip does.

        Example::

            >>> Package("demo", "1.0", requires_python=">=3.8").is_python_compatible("3.7")
            False
        """
        if not self.requires_python:
            return True

        try:
            return python_version in SpecifierSet(self.requires_python)
        except InvalidSpecifier:
            return True

    @classmethod
    def from_pypi_info(cls, info: Dict[str, Any], fallback_name: str = "") -> "Package":
        """Build a package from the ``info`` object of a PyPI JSON response."""
        return cls(
            name=info.get("name") or fallback_name,
            version=info.get("version") or "",
            summary=info.get("summary") or None,
            requires_python=info.get("requires_python") or None,
            requires_dist=list(info.get("requires_dist") or []),
            classifiers=list(info.get("classifiers") or []),
            home_page=info.get("home_page") or None,
            author=info.get("author") or None,
            license=info.get("license") or None,
        )

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"
