"""
Discovery of distributions installed in the running interpreter.
"""

from __future__ import annotations

import json
from typing import Iterator, Optional, Tuple

from importlib import metadata

from deplock.core.candidate_selector import CandidateSelector, SelectionStrategy
from deplock.models.package import Package
from deplock.utils.logger import get_logger

logger = get_logger("installed")


def _is_editable(dist: metadata.Distribution) -> bool:
    """Read ``direct_url.json`` (PEP 610) and report ``dir_info.editable``."""
    raw = dist.read_text("direct_url.json")
    if not raw:
        return False

    try:
        direct_url = json.loads(raw)
    except ValueError:
        logger.debug("Malformed direct_url.json for %s", dist.metadata.get("Name"))
        return False

    dir_info = direct_url.get("dir_info") if isinstance(direct_url, dict) else None
    return bool(isinstance(dir_info, dict) and dir_info.get("editable"))


def _to_package(dist: metadata.Distribution) -> Optional[Package]:
    meta = dist.metadata
    name = meta.get("Name")
    if not name:
        return None

    return Package(
        name=name,
        version=dist.version,
        summary=meta.get("Summary") or None,
        requires_python=meta.get("Requires-Python") or None,
        requires_dist=list(dist.requires or []),
        classifiers=meta.get_all("Classifier") or [],
        home_page=meta.get("Home-page") or None,
        author=meta.get("Author") or None,
        license=meta.get("License") or None,
    )


def iter_installed_packages() -> Iterator[Tuple[Package, bool]]:
    """Yield ``(package, is_editable)`` for every visible distribution."""
    for dist in metadata.distributions():
        package = _to_package(dist)
        if package is None:
            continue
        yield package, _is_editable(dist)


def build_installed_selector(
    strategy: SelectionStrategy = SelectionStrategy.PREFER_COMPATIBLE,
) -> CandidateSelector:
    """Return a :class:`CandidateSelector` seeded with the installed packages."""
    selector = CandidateSelector(strategy)
    for package, editable in iter_installed_packages():
        selector.register_installed(package, is_editable=editable)

    logger.debug("Registered %d installed distribution(s)", len(selector))
    return selector
