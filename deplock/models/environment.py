"""
Target environment snapshot used for marker evaluation.
"""

from __future__ import annotations

import os
import sys
import platform as _platform
from dataclasses import dataclass, replace
from typing import Dict, Optional


@dataclass(frozen=True)
class Environment:
    """
    Immutable description of the interpreter and platform being resolved for.

    Attributes:
        python_version: ``major.minor`` interpreter version, e.g. ``"3.11"``.
        python_full_version: Full interpreter version, e.g. ``"3.11.7"``.
            ``None`` falls back to *python_version*.
        platform: ``sys.platform`` value, e.g. ``"linux"`` or ``"win32"``.
        implementation: ``sys.implementation.name``, e.g. ``"cpython"``.
        architecture: Machine type, e.g. ``"x86_64"``.
        os_name: ``os.name`` value, e.g. ``"posix"``.
    """

    python_version: str = "3.11"
    platform: str = "linux"
    implementation: str = "cpython"
    architecture: str = "x86_64"
    os_name: str = "posix"
    python_full_version: Optional[str] = None

    @classmethod
    def current(cls) -> "Environment":
        """Snapshot the running interpreter."""
        return cls(
            python_version=f"{sys.version_info.major}.{sys.version_info.minor}",
            platform=sys.platform,
            implementation=sys.implementation.name,
            architecture=_platform.machine() or "unknown",
            os_name=os.name,
            python_full_version=_platform.python_version(),
        )

    def with_overrides(
        self,
        *,
        python_version: Optional[str] = None,
        platform: Optional[str] = None,
        implementation: Optional[str] = None,
    ) -> "Environment":
        """Return a copy with the given fields replaced (``None`` keeps the field).

        Overriding *python_version* also replaces the full version.
        """
        changes: Dict[str, Optional[str]] = {}
        if python_version is not None:
            changes["python_version"] = python_version
            changes["python_full_version"] = python_version
        if platform is not None:
            changes["platform"] = platform
        if implementation is not None:
            changes["implementation"] = implementation
        return replace(self, **changes)

    def to_marker_vars(self) -> Dict[str, str]:
        """Map marker variable names to their values in this environment."""
        return {
            "python_version": self.python_version,
            "python_full_version": self.python_full_version or self.python_version,
            "platform": self.platform,
            "sys_platform": self.platform,
            "implementation_name": self.implementation,
            "platform_python_implementation": self.implementation,
            "platform_machine": self.architecture,
            "os_name": self.os_name,
        }
