"""
Centralized constants for deplock.

This module defines immutable configuration values used across deplock,
including registry endpoints, resolver tuning, cache defaults, requirement
file directives and logging formats. All values are read-only.
"""

from typing import Final, Tuple

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "deplock/{version} (+https://pypi.org/project/deplock/)"

# ---------------------------------------------------------------------------
# PyPI endpoints
# ---------------------------------------------------------------------------

#: JSON API for the newest release of a project.
PYPI_JSON_API: Final[str] = "https://pypi.org/pypi/{package}/json"

#: JSON API for one specific release of a project.
PYPI_VERSION_JSON_API: Final[str] = "https://pypi.org/pypi/{package}/{version}/json"

#: Version selector meaning "newest available release".
LATEST_SELECTOR: Final[str] = "latest"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

#: 429 responses tolerated for one request before giving up.
MAX_RATE_LIMIT_RETRIES: Final[int] = 5

# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

#: Batch size and semaphore width for concurrent metadata fetches.
DEFAULT_MAX_CONCURRENT: Final[int] = 10

#: Operators accepted at the start of a version clause. Two-character
#: operators come first so that ``<=`` is not read as ``<``.
VERSION_OPERATORS: Final[Tuple[str, ...]] = ("==", "!=", "<=", ">=", "~=", "<", ">")

# ---------------------------------------------------------------------------
# Disk cache
# ---------------------------------------------------------------------------

#: Default time-to-live for cached metadata, in seconds (24 hours).
DEFAULT_CACHE_TTL: Final[int] = 24 * 60 * 60

#: Subdirectory created under the user cache directory.
CACHE_DIR_NAME: Final[str] = "deplock"

# ---------------------------------------------------------------------------
# Lock file
# ---------------------------------------------------------------------------

#: Only lock file format version understood by this release.
LOCK_FILE_VERSION: Final[str] = "1.0"

#: Default output path for ``deplock lock``.
DEFAULT_LOCK_FILE: Final[str] = "deplock.lock.json"

# ---------------------------------------------------------------------------
# Requirement file directives
# ---------------------------------------------------------------------------

#: Short include directive for requirement files.
INCLUDE_DIRECTIVE: Final[str] = "-r"

#: Long include directive for requirement files.
INCLUDE_DIRECTIVE_LONG: Final[str] = "--requirement"

#: Short constraint directive.
CONSTRAINT_DIRECTIVE: Final[str] = "-c"

#: Long constraint directive.
CONSTRAINT_DIRECTIVE_LONG: Final[str] = "--constraint"

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading requirement files.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Default candidate selection strategy name.
DEFAULT_SELECTION_STRATEGY: Final[str] = "prefer-compatible"

#: Dedicated configuration file name.
CONFIG_FILE_NAME: Final[str] = "deplock.toml"

#: Project file that may carry a ``[tool.deplock]`` table.
PYPROJECT_FILE_NAME: Final[str] = "pyproject.toml"

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
