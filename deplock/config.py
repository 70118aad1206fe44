"""Configuration file loader for deplock.

Settings live in ``deplock.toml`` under ``[deplock]`` or in
``pyproject.toml`` under ``[tool.deplock]``. The first match wins:

1. the path given with ``--config`` or ``DEPLOCK_CONFIG``
2. ``./deplock.toml``
3. ``./pyproject.toml``, only when it has a ``[tool.deplock]`` table

Command line options override the file, which overrides the defaults.

Example (``deplock.toml``)::

    [deplock]
    max_concurrency = 20
    cache_ttl = 3600
    selection_strategy = "prefer-latest"
    python_version = "3.11"
    platform = "linux"
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from deplock.exceptions import ConfigError
from deplock.utils.logger import get_logger
from deplock.utils.disk_cache import default_cache_dir
from deplock.core.candidate_selector import SelectionStrategy
from deplock.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_CACHE_TTL,
    DEFAULT_MAX_CONCURRENT,
    DEFAULT_SELECTION_STRATEGY,
    PYPROJECT_FILE_NAME,
)

logger = get_logger("config")


@dataclass
class DepLockConfig:
    """Validated deplock settings; every field has a default.

    Attributes:
        max_concurrency: Resolver batch size and in-flight fetch limit.
        cache_enabled: Keep PyPI responses in the on-disk cache.
        cache_dir: Cache directory; ``None`` means the per-user default.
        cache_ttl: Lifetime of cache entries, in seconds.
        selection_strategy: Candidate selection strategy name.
        python_version: Target interpreter for marker evaluation; ``None``
            means the running interpreter.
        platform: Target ``sys.platform``; ``None`` means the current one.
        source_path: File the settings came from, ``None`` for defaults.
    """

    max_concurrency: int = DEFAULT_MAX_CONCURRENT
    cache_enabled: bool = True
    cache_dir: Optional[Path] = None
    cache_ttl: int = DEFAULT_CACHE_TTL
    selection_strategy: str = DEFAULT_SELECTION_STRATEGY
    python_version: Optional[str] = None
    platform: Optional[str] = None

    source_path: Optional[Path] = field(default=None, repr=False)

    @property
    def strategy(self) -> SelectionStrategy:
        return SelectionStrategy.from_name(self.selection_strategy)

    @property
    def resolved_cache_dir(self) -> Path:
        return self.cache_dir if self.cache_dir is not None else default_cache_dir()

    def to_log_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        del data["source_path"]
        data["cache_dir"] = str(self.resolved_cache_dir)
        return data


# ---------------------------------------------------------------------------
# Option table
# ---------------------------------------------------------------------------


def _at_least_one(value: int) -> int:
    if value < 1:
        raise ValueError(f"must be at least 1, got {value}")
    return value


def _strategy_name(value: str) -> str:
    SelectionStrategy.from_name(value)
    return value


def _directory(value: str) -> Path:
    return Path(value).expanduser()


# option -> (expected type, description, converter raising ValueError)
_OPTIONS: Dict[str, Tuple[type, str, Optional[Callable[[Any], Any]]]] = {
    "max_concurrency": (int, "an integer", _at_least_one),
    "cache_enabled": (bool, "a boolean", None),
    "cache_dir": (str, "a string", _directory),
    "cache_ttl": (int, "an integer", _at_least_one),
    "selection_strategy": (str, "a string", _strategy_name),
    "python_version": (str, "a string", None),
    "platform": (str, "a string", None),
}


# ---------------------------------------------------------------------------
# Discovery and loading
# ---------------------------------------------------------------------------


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Return the resolved path of the configuration file to load, if any.

    Raises:
        ConfigError: *explicit_path* was given but is not a file.
    """
    if explicit_path is not None:
        if not explicit_path.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        return explicit_path.resolve()

    cwd = Path.cwd()
    candidate = cwd / CONFIG_FILE_NAME
    if candidate.is_file():
        return candidate.resolve()

    candidate = cwd / PYPROJECT_FILE_NAME
    if candidate.is_file() and _has_tool_section(candidate):
        return candidate.resolve()

    return None


def _has_tool_section(pyproject: Path) -> bool:
    try:
        tool = _read_toml(pyproject).get("tool")
    except ConfigError as exc:
        logger.debug("Ignoring unreadable %s: %s", pyproject, exc)
        return False
    return isinstance(tool, dict) and "deplock" in tool


def load_config(config_path: Optional[Path] = None) -> DepLockConfig:
    """Discover, read and validate the configuration.

    Raises:
        ConfigError: The file is not valid TOML, the section is not a table,
            or it holds unknown keys or bad values.
    """
    path = discover_config_file(config_path)
    if path is None:
        logger.debug("No configuration file, using defaults")
        return DepLockConfig()

    logger.info("Loading configuration from %s", path)
    document = _read_toml(path)
    if path.name == PYPROJECT_FILE_NAME:
        section = document.get("tool", {}).get("deplock")
    else:
        section = document.get("deplock")

    if section is None:
        return DepLockConfig(source_path=path)
    if not isinstance(section, dict):
        raise ConfigError("deplock configuration must be a table", config_path=str(path))

    return DepLockConfig(source_path=path, **_validate(section, str(path)))


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path.name}: {exc}", config_path=str(path)) from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}", config_path=str(path)) from exc


def _validate(section: Dict[str, Any], config_path: str) -> Dict[str, Any]:
    unknown = sorted(set(section) - set(_OPTIONS))
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(unknown)}",
            config_path=config_path,
        )

    values: Dict[str, Any] = {}
    for key, value in section.items():
        expected, description, convert = _OPTIONS[key]
        # bool is a subclass of int
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(
                f"{key} must be {description}, got {type(value).__name__}",
                config_path=config_path,
                option=key,
            )
        try:
            values[key] = convert(value) if convert else value
        except ValueError as exc:
            raise ConfigError(f"{key} {exc}", config_path=config_path, option=key) from exc
    return values
