"""Lock and verify commands for deplock.

``deplock lock`` resolves requirements and freezes the result into a lock
file; ``deplock verify`` checks that an existing lock file is usable.

Typical usage::

    $ deplock lock -r requirements.txt -o deplock.lock.json
    $ deplock verify deplock.lock.json
"""

from __future__ import annotations

import sys
import click
import asyncio
from pathlib import Path
from typing import List, Optional, Tuple

from deplock.commands.resolve import build_environment, collect_requirements, run_resolution
from deplock.constants import DEFAULT_LOCK_FILE
from deplock.context import DepLockContext, pass_context
from deplock.core import LockFile
from deplock.exceptions import DepLockError
from deplock.models import Package
from deplock.utils import (
    clean_old_backups,
    get_logger,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.lock")


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
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_LOCK_FILE,
    show_default=True,
    help="Lock file to write.",
)
@click.option("--python-version", help="Target Python version, e.g. 3.11.")
@click.option("--platform", help="Target sys.platform for markers, e.g. win32.")
@click.option(
    "--backup/--no-backup",
    default=True,
    help="Keep a timestamped copy of the previous lock file.",
)
@pass_context
def lock(
    ctx: DepLockContext,
    requirements: Tuple[str, ...],
    requirement_files: Tuple[Path, ...],
    constraint_files: Tuple[Path, ...],
    output: Path,
    python_version: Optional[str],
    platform: Optional[str],
    backup: bool,
) -> None:
    """Resolve requirements and write a lock file.

    Exits:
        0 on success, 1 when nothing resolved or on error.
    """
    if not requirements and not requirement_files:
        print_error("Nothing to lock: pass requirements or -r FILE")
        sys.exit(1)

    try:
        reqs, constraints = collect_requirements(requirements, requirement_files, constraint_files)
        environment = build_environment(ctx.config, python_version, platform)
        packages = asyncio.run(run_resolution(ctx.config, environment, reqs, constraints))

        lockfile = LockFile.from_packages(packages, environment.python_version)
        lockfile.validate()
        backup_path = lockfile.save(output, create_backup=backup)
    except DepLockError as e:
        print_error(f"{e}")
        sys.exit(1)

    if backup_path is not None:
        logger.info("Previous lock file saved as %s", backup_path)
        clean_old_backups(output)

    _warn_python_incompatible(packages, environment.python_version)
    print_success(f"Locked {len(lockfile)} package(s) to {output}")


@click.command()
@click.argument(
    "lock_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_LOCK_FILE,
)
@pass_context
def verify(ctx: DepLockContext, lock_file: Path) -> None:
    """Validate a lock file and list its packages.

    Exits:
        0 if the lock file is valid, 1 otherwise.
    """
    try:
        lockfile = LockFile.load(lock_file)
        lockfile.validate()
    except DepLockError as e:
        print_error(f"{e}")
        sys.exit(1)

    print_table(
        [
            {"Package": locked.name, "Version": locked.version, "Summary": locked.summary or ""}
            for locked in lockfile.packages.values()
        ],
        headers=["Package", "Version", "Summary"],
        title=f"{lock_file} (python {lockfile.python_version or '?'})",
        caption=f"generated {lockfile.generated_at}",
    )
    print_success(f"{lock_file} is valid ({len(lockfile)} package(s))")


def _warn_python_incompatible(packages: List[Package], python_version: str) -> None:
    for package in packages:
        if not package.is_python_compatible(python_version):
            print_warning(
                f"{package.name} {package.version} requires Python "
                f"{package.requires_python}, target is {python_version}"
            )
