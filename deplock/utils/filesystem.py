"""
File helpers shared by the requirements parser, the lock file and the disk
cache.

Reads are size-capped. Writes go to a temporary sibling that replaces the
target with one ``os.replace``, so an interrupted run never leaves a
half-written lock file or cache entry behind. Every ``OSError`` surfaces as
:class:`FileOperationError` naming the path and the operation.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from datetime import datetime
from typing import List, Optional, Union

from deplock.utils.logger import get_logger
from deplock.exceptions import FileOperationError
from deplock.constants import MAX_FILE_SIZE

logger = get_logger("filesystem")

PathLike = Union[str, Path]

#: Backups are named ``<file>.<YYYYmmdd_HHMMSS_ffffff>.backup``.
BACKUP_SUFFIX = ".backup"


def _error(
    message: str,
    path: Path,
    operation: str,
    cause: Optional[BaseException] = None,
) -> FileOperationError:
    return FileOperationError(message, file_path=str(path), operation=operation, original_error=cause)


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Read a requirements or lock file as text.

    Raises:
        FileOperationError: The path is missing, is not a regular file, is
            larger than *max_size* bytes (``None`` disables the cap), cannot
            be read, or is not valid *encoding*.
    """
    path = Path(file_path)
    if not path.exists():
        raise _error(f"File not found: {path}", path, "read")
    if not path.is_file():
        raise _error(f"Not a file: {path}", path, "read")

    try:
        size = path.stat().st_size
        if max_size is not None and size > max_size:
            raise _error(f"File too large: {size} bytes (max {max_size})", path, "read")
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise _error(f"Failed to read file: {exc}", path, "read", exc) from exc


def atomic_write_bytes(file_path: PathLike, data: bytes) -> None:
    """Replace *file_path* with *data*, creating parent directories."""
    target = Path(file_path)
    temp_name: Optional[str] = None

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            dir=str(target.parent),
            prefix=f".{target.name}.",
            suffix=".tmp",
        )
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, target)
    except OSError as exc:
        if temp_name is not None:
            _discard(Path(temp_name))
        raise _error(f"Atomic write failed: {exc}", target, "write", exc) from exc


def safe_write_file(
    file_path: PathLike,
    content: str,
    *,
    create_backup: bool = False,
) -> Optional[Path]:
    """Atomically write *content* as UTF-8.

    Returns:
        The copy of the previous file when *create_backup* is set and the
        file existed, else ``None``.
    """
    path = Path(file_path)
    backup = _backup(path) if create_backup and path.is_file() else None
    atomic_write_bytes(path, content.encode("utf-8"))
    return backup


def list_backups(file_path: PathLike) -> List[Path]:
    """Backups of *file_path*, newest first."""
    path = Path(file_path)
    backups = path.parent.glob(f"{path.name}.*{BACKUP_SUFFIX}")
    return sorted(backups, key=lambda p: p.stat().st_mtime, reverse=True)


def clean_old_backups(file_path: PathLike, *, keep: int = 5) -> int:
    """Delete all but the *keep* newest backups; return how many were removed."""
    removed = 0
    for backup in list_backups(file_path)[keep:]:
        try:
            backup.unlink()
        except OSError as exc:
            logger.warning("Failed to delete backup %s: %s", backup, exc)
            continue
        logger.debug("Deleted old backup %s", backup)
        removed += 1
    return removed


def _backup(path: Path) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup = path.with_name(f"{path.name}.{stamp}{BACKUP_SUFFIX}")
    try:
        shutil.copy2(path, backup)
    except OSError as exc:
        raise _error(f"Failed to create backup: {exc}", path, "backup", exc) from exc
    logger.debug("Backed up %s to %s", path, backup)
    return backup


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Failed to remove temporary file %s: %s", path, exc)
