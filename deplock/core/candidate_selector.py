"""
Candidate selection for deplock.

A candidate is one concrete release that could satisfy a requirement, plus
where it came from: already installed in the target environment (possibly
as an editable checkout) or fetched from an index. The selector remembers
the installed ones so callers can decide whether a resolved version needs
to be installed at all, and picks the best of several candidates according
to a :class:`SelectionStrategy`.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from deplock.models.package import Package
from deplock.utils.logger import get_logger
from deplock.utils.version_utils import compare_versions

logger = get_logger("candidate_selector")


class SelectionStrategy(Enum):
    """How :meth:`CandidateSelector.select_best` breaks ties."""

    PREFER_INSTALLED = "prefer-installed"
    PREFER_LATEST = "prefer-latest"
    PREFER_COMPATIBLE = "prefer-compatible"

    @classmethod
    def from_name(cls, name: str) -> "SelectionStrategy":
        """Look up a strategy by its configuration name (``prefer-latest``)."""
        return cls(name.strip().lower().replace("_", "-"))


@dataclass
class Candidate:
    """
    A release that may satisfy a requirement.

    Attributes:
        package: Package metadata.
        is_installed: Present in the target environment.
        is_editable: Installed in editable (development) mode.
        link_url: Source URL for non-installed candidates.
    """

    package: Package
    is_installed: bool = False
    is_editable: bool = False
    link_url: Optional[str] = None

    @property
    def key(self) -> str:
        return _candidate_key(self.package.name, self.package.version)


@dataclass
class CandidateStats:
    """Counts of the candidates a selector knows about."""

    total: int = 0
    installed: int = 0
    editable: int = 0


def _candidate_key(name: str, version: str) -> str:
    return f"{name.lower()}=={version}"


class CandidateSelector:
    """Tracks installed releases and chooses between candidates.

    Args:
        strategy: Default strategy for :meth:`select_best`.

    Example:
        >>> selector = CandidateSelector()
        >>> selector.register_installed(Package("requests", "2.31.0"), is_editable=False)
        >>> selector.can_reuse_installed("Requests", "2.31.0")
        True
    """

    def __init__(
        self,
        strategy: SelectionStrategy = SelectionStrategy.PREFER_COMPATIBLE,
    ) -> None:
        self.strategy = strategy
        self._candidates: Dict[str, Candidate] = {}

    def register_installed(self, package: Package, is_editable: bool) -> None:
        """Record *package* as installed; re-registering replaces the entry."""
        candidate = Candidate(
            package=package,
            is_installed=True,
            is_editable=is_editable,
            link_url=None,
        )
        self._candidates[candidate.key] = candidate
        logger.debug(
            "Registered installed candidate %s%s",
            candidate.key,
            " (editable)" if is_editable else "",
        )

    def can_reuse_installed(
        self,
        name: str,
        version: str,
        link_url: Optional[str] = None,
        is_editable: bool = False,
    ) -> bool:
        """Return True if the installed release can be used as-is.

        The known candidate must have exactly the requested source
        (*link_url*, where ``None`` only matches ``None``) and editability.
        """
        candidate = self._candidates.get(_candidate_key(name, version))
        if candidate is None:
            return False

        return candidate.link_url == link_url and candidate.is_editable == is_editable

    def get_installed(self, name: str, version: str) -> Optional[Candidate]:
        """Return the installed candidate for ``name==version``, if any."""
        candidate = self._candidates.get(_candidate_key(name, version))
        if candidate is not None and candidate.is_installed:
            return candidate
        return None

    def select_best(
        self,
        candidates: Sequence[Candidate],
        strategy: Optional[SelectionStrategy] = None,
    ) -> Optional[Candidate]:
        """Pick one of *candidates* (``None`` if the sequence is empty).

        - ``PREFER_INSTALLED``: the first installed candidate, otherwise the
          first candidate.
        - ``PREFER_LATEST``: the highest version.
        - ``PREFER_COMPATIBLE``: the first installed candidate, otherwise the
          highest version.
        """
        if not candidates:
            return None

        strategy = strategy or self.strategy

        if strategy is SelectionStrategy.PREFER_LATEST:
            return _latest(candidates)

        installed = next((c for c in candidates if c.is_installed), None)
        if installed is not None:
            return installed

        if strategy is SelectionStrategy.PREFER_INSTALLED:
            return candidates[0]

        return _latest(candidates)

    def installed_candidates(self) -> List[Candidate]:
        """Return every installed candidate, in registration order."""
        return [c for c in self._candidates.values() if c.is_installed]

    def clear_installed(self) -> None:
        self._candidates.clear()

    def stats(self) -> CandidateStats:
        values = list(self._candidates.values())
        return CandidateStats(
            total=len(values),
            installed=sum(1 for c in values if c.is_installed),
            editable=sum(1 for c in values if c.is_editable),
        )

    def __len__(self) -> int:
        return len(self._candidates)


def _latest(candidates: Sequence[Candidate]) -> Candidate:
    best = candidates[0]
    for candidate in candidates[1:]:
        if compare_versions(candidate.package.version, best.package.version) > 0:
            best = candidate
    return best
