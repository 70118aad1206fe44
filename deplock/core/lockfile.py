"""
Lock file model for deplock.

A lock file freezes the outcome of one resolution so it can be reproduced.
It is stored as indented JSON::

    {
      "version": "1.0",
      "generated_at": "2026-01-01T12:00:00+01:00",
      "python_version": "3.11",
      "packages": {
        "requests-2.31.0": {
          "name": "requests",
          "version": "2.31.0",
          "summary": "Python HTTP for Humans.",
          "dependencies": ["charset-normalizer<4,>=2", "idna<4,>=2.5"],
          "hash": null,
          "url": null
        }
      }
    }

:meth:`LockFile.load` does not validate; call :meth:`LockFile.validate`
before trusting a loaded file.
"""

from __future__ import annotations

import json
from pathlib import Path
from datetime import datetime
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

from deplock.constants import LOCK_FILE_VERSION
from deplock.exceptions import FileOperationError, LockFileError
from deplock.models.package import Package
from deplock.models.requirement import normalize_name
from deplock.utils.filesystem import safe_read_file, safe_write_file
from deplock.utils.logger import get_logger

logger = get_logger("lockfile")

# Public API
__all__ = ["LockFile", "LockedPackage"]


@dataclass
class LockedPackage:
    """One pinned package inside a lock file."""

    name: str
    version: str
    summary: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    hash: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_package(cls, package: Package) -> "LockedPackage":
        return cls(
            name=package.name,
            version=package.version,
            summary=package.summary,
            dependencies=list(package.requires_dist),
        )

    def to_package(self) -> Package:
        return Package(
            name=self.name,
            version=self.version,
            summary=self.summary,
            requires_dist=list(self.dependencies),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LockedPackage":
        dependencies = data.get("dependencies") or []
        if not isinstance(dependencies, list):
            raise ValueError("'dependencies' must be a list")

        return cls(
            name=str(data["name"]),
            version=str(data["version"]),
            summary=data.get("summary"),
            dependencies=[str(dep) for dep in dependencies],
            hash=data.get("hash"),
            url=data.get("url"),
        )


@dataclass
class LockFile:
    """
    A frozen resolution.

    Attributes:
        version: Lock file format version; only ``"1.0"`` is valid.
        generated_at: RFC 3339 local timestamp of creation.
        python_version: Interpreter version the resolution targeted.
        packages: Pinned packages keyed by ``"{name}-{version}"``.
    """

    version: str = LOCK_FILE_VERSION
    generated_at: str = ""
    python_version: str = ""
    packages: Dict[str, LockedPackage] = field(default_factory=dict)

    @classmethod
    def from_packages(cls, packages: List[Package], python_version: str) -> "LockFile":
        """Build a lock file from resolved packages.

        Packages with the same name and version collapse into one entry
        (the last one wins).
        """
        locked: Dict[str, LockedPackage] = {}
        for package in packages:
            locked[f"{package.name}-{package.version}"] = LockedPackage.from_package(package)

        return cls(
            version=LOCK_FILE_VERSION,
            generated_at=datetime.now().astimezone().isoformat(timespec="seconds"),
            python_version=python_version,
            packages=locked,
        )

    # ------------------------------------------------------------------
    # Validation and queries
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Raise :class:`LockFileError` if the lock file cannot be trusted."""
        if self.version != LOCK_FILE_VERSION:
            raise LockFileError(
                f"Unsupported lock file version {self.version!r} "
                f"(expected {LOCK_FILE_VERSION!r})"
            )
        if not self.packages:
            raise LockFileError("Lock file contains no packages")

    def to_packages(self) -> List[Package]:
        return [locked.to_package() for locked in self.packages.values()]

    def get_package(self, name: str, version: str) -> Optional[LockedPackage]:
        return self.packages.get(f"{normalize_name(name)}-{version}")

    def has_package(self, name: str) -> bool:
        """Return True if any version of *name* is pinned."""
        normalized = normalize_name(name)
        return any(locked.name == normalized for locked in self.packages.values())

    def package_names(self) -> List[str]:
        """Return the distinct pinned names, sorted."""
        return sorted({locked.name for locked in self.packages.values()})

    def __len__(self) -> int:
        return len(self.packages)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generated_at": self.generated_at,
            "python_version": self.python_version,
            "packages": {key: asdict(locked) for key, locked in self.packages.items()},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LockFile":
        packages = data.get("packages", {})
        if not isinstance(packages, dict):
            raise ValueError("'packages' must be an object")

        return cls(
            version=str(data.get("version", "")),
            generated_at=str(data.get("generated_at", "")),
            python_version=str(data.get("python_version", "")),
            packages={key: LockedPackage.from_dict(value) for key, value in packages.items()},
        )

    def save(self, path: Union[str, Path], *, create_backup: bool = False) -> Optional[Path]:
        """Write the lock file atomically.

        Returns:
            Path of the backup of the previous file, if one was made.
        """
        backup = safe_write_file(path, self.to_json(), create_backup=create_backup)
        logger.info("Wrote lock file with %d package(s) to %s", len(self.packages), path)
        return backup

    @classmethod
    def load(cls, path: Union[str, Path]) -> "LockFile":
        """Read a lock file without validating it.

        Raises:
            LockFileError: The file is missing, unreadable, not JSON, or not
                shaped like a lock file.
        """
        try:
            content = safe_read_file(path)
        except FileOperationError as exc:
            raise LockFileError(exc.message, file_path=str(path)) from exc

        try:
            data = json.loads(content)
            if not isinstance(data, dict):
                raise ValueError("top-level value must be an object")
            return cls.from_dict(data)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise LockFileError(f"Malformed lock file: {exc}", file_path=str(path)) from exc
