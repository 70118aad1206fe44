"""
Exception hierarchy for deplock.

Every error derives from :class:`DepLockError` and carries a ``details``
mapping that is appended to ``str(error)``, so a single ``print_error``
or ``logger.warning("%s", exc)`` shows where the problem came from::

    >>> str(LockFileError("Unsupported lock file version '0.9'", file_path="deplock.lock.json"))
    "Unsupported lock file version '0.9' (path=deplock.lock.json)"

Only structurally invalid input (a malformed requirement, an unreadable
requirements file, a broken configuration) is raised out of the public API.
Per-package problems during resolution are logged and the package omitted.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Mapping, Optional

#: Longest response body kept in ``NetworkError.details``.
MAX_DETAIL_LENGTH = 200


class DepLockError(Exception):
    """Base exception for all deplock errors.

    Subclasses name their keyword attributes in ``detail_keys`` (attribute
    name to ``details`` key). Every listed attribute is set on the instance;
    only the ones that are not ``None`` show up in ``details``.

    Args:
        message: Human-readable error message.
        details: Extra structured metadata.
        **fields: Values for the attributes in ``detail_keys``.
    """

    detail_keys: ClassVar[Dict[str, str]] = {}

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
        **fields: Any,
    ) -> None:
        unknown = sorted(set(fields) - set(self.detail_keys))
        if unknown:
            raise TypeError(f"{type(self).__name__} got unexpected fields: {', '.join(unknown)}")

        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details) if details else {}

        for attr, key in self.detail_keys.items():
            value = fields.get(attr)
            setattr(self, attr, value)
            if value is not None:
                self.details[key] = self._render(attr, value)

    def _render(self, attr: str, value: Any) -> Any:
        return value

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, details={self.details!r})"


class InvalidRequirement(DepLockError):
    """A requirement string could not be parsed."""

    def __init__(self, spec: str, reason: str) -> None:
        super().__init__(
            f"Invalid requirement {spec!r}: {reason}",
            {"spec": spec, "reason": reason},
        )
        self.spec = spec
        self.reason = reason


class ParseError(DepLockError):
    """A requirements or constraints file is malformed.

    Attributes:
        line_number: 1-based line where parsing stopped.
        line_content: The offending logical line.
        file_path: File being parsed, ``None`` for in-memory text.
    """

    detail_keys = {"line_number": "line", "line_content": "content", "file_path": "file"}

    line_number: Optional[int]
    line_content: Optional[str]
    file_path: Optional[str]


class NetworkError(DepLockError):
    """An HTTP request failed or returned an unusable status.

    ``response_body`` is kept whole on the attribute and truncated in
    ``details``.
    """

    detail_keys = {"url": "url", "status_code": "status_code", "response_body": "response"}

    url: Optional[str]
    status_code: Optional[int]
    response_body: Optional[str]

    def _render(self, attr: str, value: Any) -> Any:
        if attr == "response_body" and len(value) > MAX_DETAIL_LENGTH:
            return value[:MAX_DETAIL_LENGTH] + "..."
        return value


class PyPIError(NetworkError):
    """The PyPI JSON API had no usable metadata for ``package_name``."""

    detail_keys = {**NetworkError.detail_keys, "package_name": "package"}

    package_name: Optional[str]


class FileOperationError(DepLockError):
    """Reading, writing or backing up a file failed.

    ``original_error`` keeps the underlying ``OSError``; ``details`` shows
    its message.
    """

    detail_keys = {"file_path": "path", "operation": "operation", "original_error": "original_error"}

    file_path: Optional[str]
    operation: Optional[str]
    original_error: Optional[BaseException]

    def _render(self, attr: str, value: Any) -> Any:
        return str(value) if attr == "original_error" else value


class ConfigError(DepLockError):
    """A configuration file is missing, malformed or holds a bad value."""

    detail_keys = {"config_path": "config", "option": "option"}

    config_path: Optional[str]
    option: Optional[str]


class LockFileError(DepLockError):
    """A lock file is unreadable or fails validation."""

    detail_keys = {"file_path": "path"}

    file_path: Optional[str]
