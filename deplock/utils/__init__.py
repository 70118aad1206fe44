"""
Utility helpers for deplock.

This package provides reusable utilities used across deplock, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers and the on-disk metadata cache
- Async HTTP client utilities
- Version comparison helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from deplock.utils.filesystem import (
    atomic_write_bytes,
    clean_old_backups,
    list_backups,
    safe_read_file,
    safe_write_file,
)
from deplock.utils.disk_cache import DiskCache, DiskCacheStats, default_cache_dir

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from deplock.utils.logger import (
    get_logger,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from deplock.utils.console import (
    print_error,
    print_json,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from deplock.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from deplock.utils.version_utils import (
    check_version_spec,
    compare_versions,
    get_update_type,
    parse_version_parts,
    satisfies_all,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "print_error",
    "print_json",
    "print_table",
    "print_success",
    "print_warning",
    "reconfigure_console",
    # Logging
    "get_logger",
    "setup_logging",
    # Filesystem
    "safe_read_file",
    "safe_write_file",
    "atomic_write_bytes",
    "list_backups",
    "clean_old_backups",
    "DiskCache",
    "DiskCacheStats",
    "default_cache_dir",
    # HTTP
    "HTTPClient",
    # Version utilities
    "parse_version_parts",
    "compare_versions",
    "check_version_spec",
    "satisfies_all",
    "get_update_type",
]
