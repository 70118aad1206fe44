"""Resolve command implementation for deplock.

Resolves requirements given on the command line and/or in requirements
files against PyPI and prints the resulting package set.

The command wires together:

1. **RequirementsParser**: reads ``-r`` files (and the constraints they
   reference through ``-c``).
2. **Resolver**: walks the dependency graph through a
   :class:`PyPIMetadataSource` backed by the on-disk cache.
3. **CandidateSelector**: seeded with the distributions installed in the
   running interpreter, to flag resolved versions that are already present.

Typical usage::

    $ deplock resolve "requests>=2.28" flask
    $ deplock resolve -r requirements.txt --platform win32
    $ deplock resolve -r requirements.txt --format json > resolved.json
"""

from __future__ import annotations

import sys
import click
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from deplock.config import DepLockConfig
from deplock.context import DepLockContext, pass_context
from deplock.core import (
    CandidateSelector,
    PyPIMetadataSource,
    RequirementsParser,
    Resolver,
    build_installed_selector,
)
from deplock.exceptions import DepLockError
from deplock.models import Environment, Package, Requirement
from deplock.utils import (
    DiskCache,
    HTTPClient,
    get_logger,
    get_update_type,
    print_error,
    print_json,
    print_table,
    print_warning,
)

logger = get_logger("commands.resolve")


# ---------------------------------------------------------------------------
# Shared helpers (also used by ``deplock lock``)
# ---------------------------------------------------------------------------


def collect_requirements(
    requirements: Sequence[str],
    requirement_files: Sequence[Path],
    constraint_files: Sequence[Path],
) -> Tuple[List[Requirement], List[Requirement]]:
    """Gather requirements and constraints from arguments and files.

    Raises:
        InvalidRequirement: A command line requirement is malformed.
        ParseError: A requirements or constraints file is malformed.
        FileOperationError: A file cannot be read.
    """
    parser = RequirementsParser()
    collected = [Requirement.parse(text) for text in requirements]

    for path in requirement_files:
        collected.extend(parser.parse_file(path))

    for path in constraint_files:
        parser.parse_file(path, is_constraint_file=True)

    return collected, parser.get_constraints()


def build_environment(
    config: DepLockConfig,
    python_version: Optional[str],
    platform: Optional[str],
) -> Environment:
    """Target environment: current interpreter < config file < CLI options."""
    return Environment.current().with_overrides(
        python_version=python_version or config.python_version,
        platform=platform or config.platform,
    )


async def run_resolution(
    config: DepLockConfig,
    environment: Environment,
    requirements: List[Requirement],
    constraints: List[Requirement],
) -> List[Package]:
    """Resolve *requirements* against PyPI using the configured cache."""
    cache = DiskCache(config.resolved_cache_dir, ttl=config.cache_ttl) if config.cache_enabled else None

    async with HTTPClient(max_concurrency=config.max_concurrency) as client:
        source = PyPIMetadataSource(client, cache=cache)
        resolver = Resolver.with_environment(
            source,
            environment,
            max_concurrent=config.max_concurrency,
        )
        resolver.set_constraints(constraints)
        packages = await resolver.resolve(requirements)

    stats = resolver.cache_stats()
    logger.debug(
        "Dependency cache: %d hits / %d misses; version cache: %d entries",
        stats["dependencies"].hits,
        stats["dependencies"].misses,
        stats["versions"].size,
    )
    return packages


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@click.command()
@click.argument("requirements", nargs=-1)
@click.option(
    "--requirement",
    "-r",
    "requirement_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read requirements from a file (repeatable).",
)
@click.option(
    "--constraint",
    "-c",
    "constraint_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Apply constraints from a file (repeatable).",
)
@click.option("--python-version", help="Target Python version for markers, e.g. 3.11.")
@click.option("--platform", help="Target sys.platform for markers, e.g. win32.")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def resolve(
    ctx: DepLockContext,
    requirements: Tuple[str, ...],
    requirement_files: Tuple[Path, ...],
    constraint_files: Tuple[Path, ...],
    python_version: Optional[str],
    platform: Optional[str],
    output_format: str,
) -> None:
    """Resolve requirements and print the resulting package set.

    Packages whose exact version is already installed in the running
    interpreter are marked as such.

    Exits:
        0 when at least one package resolved, 1 otherwise or on error.
    """
    if not requirements and not requirement_files:
        print_error("Nothing to resolve: pass requirements or -r FILE")
        sys.exit(1)

    try:
        reqs, constraints = collect_requirements(requirements, requirement_files, constraint_files)
        environment = build_environment(ctx.config, python_version, platform)
        packages = asyncio.run(run_resolution(ctx.config, environment, reqs, constraints))
    except DepLockError as e:
        print_error(f"{e}")
        sys.exit(1)

    if not packages:
        print_warning("No packages could be resolved")
        sys.exit(1)

    selector = build_installed_selector(ctx.config.strategy)
    rows = _build_rows(packages, selector)

    if output_format == "json":
        print_json(rows)
    else:
        _display_table(rows, environment)


def _build_rows(packages: List[Package], selector: CandidateSelector) -> List[Dict[str, Any]]:
    installed_versions = {
        candidate.package.name: candidate.package.version
        for candidate in selector.installed_candidates()
    }

    rows: List[Dict[str, Any]] = []
    for package in packages:
        installed = installed_versions.get(package.name)
        if selector.can_reuse_installed(package.name, package.version):
            status = "installed"
        else:
            status = get_update_type(installed, package.version)

        rows.append(
            {
                "name": package.name,
                "version": package.version,
                "installed": installed,
                "status": status,
                "requires_python": package.requires_python,
            }
        )
    return rows


def _display_table(rows: List[Dict[str, Any]], environment: Environment) -> None:
    status_styles = {
        "installed": "green",
        "new": "cyan",
        "major": "red",
        "downgrade": "red",
        "minor": "yellow",
        "patch": "green",
    }

    table_rows = [
        {
            "Package": row["name"],
            "Version": row["version"],
            "Installed": row["installed"] or "-",
            "Status": row["status"],
        }
        for row in rows
    ]

    print_table(
        table_rows,
        headers=["Package", "Version", "Installed", "Status"],
        title=f"Resolved {len(rows)} package(s)",
        caption=f"python {environment.python_version} on {environment.platform}",
        row_style=lambda row: status_styles.get(row["Status"]),
    )
