"""
Version comparison utilities for deplock.

Versions are compared as dotted sequences of integers. This is a deliberate
simplification of PEP 440:

- components that are not purely numeric (``rc1``, ``post2``, ``*``) are
  dropped while parsing, so ``"2.0.0rc1"`` compares like ``"2.0"``;
- a missing trailing component counts as ``0``, so ``"1.0" == "1.0.0"``.

Every helper accepts an optional version cache (anything with a
``parse(version) -> Tuple[int, ...]`` method, normally
:class:`~deplock.core.dependency_cache.VersionCache`) so repeated
comparisons during one resolution do not re-split the same strings.
"""

from __future__ import annotations

from itertools import zip_longest
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from deplock.models.requirement import VersionOp, VersionSpec

if TYPE_CHECKING:
    from deplock.core.dependency_cache import VersionCache


def parse_version_parts(version: str) -> Tuple[int, ...]:
    """Split *version* into its numeric components.

    Examples:
        >>> parse_version_parts("1.2.3")
        (1, 2, 3)
        >>> parse_version_parts("2.0.0rc1")
        (2, 0)
    """
    return tuple(
        int(part)
        for part in version.strip().split(".")
        if part.isascii() and part.isdigit()
    )


def _parts(version: str, cache: Optional["VersionCache"]) -> Tuple[int, ...]:
    if cache is not None:
        return cache.parse(version)
    return parse_version_parts(version)


def _compare_parts(left: Tuple[int, ...], right: Tuple[int, ...]) -> int:
    for a, b in zip_longest(left, right, fillvalue=0):
        if a != b:
            return -1 if a < b else 1
    return 0


def compare_versions(
    left: str,
    right: str,
    cache: Optional["VersionCache"] = None,
) -> int:
    """Compare two version strings ordinally.

    Returns:
        ``-1`` if *left* < *right*, ``0`` if equal, ``1`` if greater.

    Examples:
        >>> compare_versions("1.0", "1.0.0")
        0
        >>> compare_versions("1.10", "1.9")
        1
    """
    return _compare_parts(_parts(left, cache), _parts(right, cache))


def check_version_spec(
    version: str,
    spec: VersionSpec,
    cache: Optional["VersionCache"] = None,
) -> bool:
    """Return True if *version* satisfies a single clause.

    ``~=`` accepts any version in the same major series that is not older
    than the target: ``2.1.0`` satisfies ``~=2.0.0`` while ``3.0.0`` and
    ``1.9.0`` do not.
    """
    current = _parts(version, cache)
    target = _parts(spec.version, cache)
    cmp = _compare_parts(current, target)

    if spec.op is VersionOp.EQ:
        return cmp == 0
    if spec.op is VersionOp.NOT_EQ:
        return cmp != 0
    if spec.op is VersionOp.LT:
        return cmp < 0
    if spec.op is VersionOp.LT_EQ:
        return cmp <= 0
    if spec.op is VersionOp.GT:
        return cmp > 0
    if spec.op is VersionOp.GT_EQ:
        return cmp >= 0

    # VersionOp.COMPATIBLE
    current_major = current[0] if current else 0
    target_major = target[0] if target else 0
    return current_major == target_major and cmp >= 0


def satisfies_all(
    version: str,
    specs: Iterable[VersionSpec],
    cache: Optional["VersionCache"] = None,
) -> bool:
    """Return True if *version* satisfies every clause (empty → True)."""
    return all(check_version_spec(version, spec, cache) for spec in specs)


def get_update_type(
    current_version: Optional[str],
    target_version: Optional[str],
) -> str:
    """Classify the change from *current_version* to *target_version*.

    Returns:
        ``"new"`` when nothing is installed, ``"same"``, ``"downgrade"``,
        ``"major"``, ``"minor"``, ``"patch"``, or ``"update"`` for changes
        beyond the third component. ``"unknown"`` when *target_version* is
        missing.

    Examples:
        >>> get_update_type("1.0.0", "2.0.0")
        'major'
        >>> get_update_type(None, "1.0.0")
        'new'
    """
    if target_version is None:
        return "unknown"

    if current_version is None:
        return "new"

    current = parse_version_parts(current_version)
    target = parse_version_parts(target_version)
    cmp = _compare_parts(current, target)

    if cmp == 0:
        return "same"
    if cmp > 0:
        return "downgrade"

    padded_current = current + (0,) * (3 - len(current))
    padded_target = target + (0,) * (3 - len(target))

    for index, label in enumerate(("major", "minor", "patch")):
        if padded_current[index] != padded_target[index]:
            return label

    return "update"
