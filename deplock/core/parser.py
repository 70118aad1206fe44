"""Requirements file parser.

Reads pip-style ``requirements.txt`` files into
:class:`~deplock.models.requirement.Requirement` objects:

- blank lines and ``#`` comments are skipped, inline comments stripped
- a trailing ``\\`` joins a line with the next one
- ``-r``/``--requirement`` includes another file (relative to the including
  file); include cycles raise :exc:`ParseError`
- ``-c``/``--constraint`` loads a constraints file, available afterwards
  from :meth:`RequirementsParser.get_constraints`
- any other option line (``--index-url``, ``-e``, ``--hash``...) and direct
  URL references are skipped with a debug log

Typical usage::

    parser = RequirementsParser()
    requirements = parser.parse_file("requirements.txt")
    constraints = parser.get_constraints()
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from deplock.constants import (
    INCLUDE_DIRECTIVE,
    CONSTRAINT_DIRECTIVE,
    INCLUDE_DIRECTIVE_LONG,
    CONSTRAINT_DIRECTIVE_LONG,
)
from deplock.exceptions import FileOperationError, InvalidRequirement, ParseError
from deplock.models.requirement import Requirement
from deplock.utils.filesystem import safe_read_file
from deplock.utils.logger import get_logger


class RequirementsParser:
    """Stateful parser for requirements files.

    Keeps the chain of files being included (to detect cycles) and the
    constraints collected through ``-c``. Call :meth:`reset` before reusing
    a parser on unrelated files.

    Example::

        >>> parser = RequirementsParser()
        >>> [r.name for r in parser.parse_string("flask>=2.0  # web\\nrequests")]
        ['flask', 'requests']
    """

    def __init__(self) -> None:
        self.logger = get_logger("parser")
        self._included_files_stack: List[Path] = []
        self._constraints: List[Requirement] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_file(
        self,
        file_path: Union[str, Path],
        *,
        is_constraint_file: bool = False,
        _parent_file: Optional[Path] = None,
    ) -> List[Requirement]:
        """Parse a requirements file from disk.

        Args:
            file_path: Path to the file. Relative paths are resolved against
                the including file's directory for ``-r``/``-c``, and against
                the working directory otherwise.
            is_constraint_file: Store the parsed requirements as constraints
                instead of returning them.

        Raises:
            FileOperationError: The file does not exist or cannot be read.
            ParseError: An include cycle, or a line that is not a valid
                requirement.
        """
        resolved_path = _resolve_file_path(Path(file_path), _parent_file)

        if resolved_path in self._included_files_stack:
            cycle_path = " -> ".join(
                str(p) for p in self._included_files_stack + [resolved_path]
            )
            raise ParseError(
                f"Circular include detected: {cycle_path}",
                file_path=str(resolved_path),
            )

        self.logger.debug(
            "Parsing file: %s%s",
            resolved_path,
            " (constraint file)" if is_constraint_file else "",
        )
        content = safe_read_file(resolved_path)

        self._included_files_stack.append(resolved_path)
        try:
            return self.parse_string(
                content,
                source_file_path=resolved_path,
                is_constraint_file=is_constraint_file,
            )
        finally:
            self._included_files_stack.pop()

    def parse_string(
        self,
        content: str,
        *,
        source_file_path: Optional[Path] = None,
        is_constraint_file: bool = False,
    ) -> List[Requirement]:
        """Parse requirements from text.

        ``-r``/``-c`` directives need *source_file_path* to resolve relative
        paths; without it they are resolved against the working directory.
        """
        requirements: List[Requirement] = []
        source = str(source_file_path) if source_file_path else None

        for line_number, line in _logical_lines(content):
            spec = _strip_comment(line)
            if not spec:
                continue

            if _is_directive(spec, INCLUDE_DIRECTIVE, INCLUDE_DIRECTIVE_LONG):
                included = self._handle_directive(
                    spec, line_number, source_file_path, is_constraint=is_constraint_file
                )
                if is_constraint_file:
                    self._constraints.extend(included)
                else:
                    requirements.extend(included)
                continue

            if _is_directive(spec, CONSTRAINT_DIRECTIVE, CONSTRAINT_DIRECTIVE_LONG):
                self._handle_directive(spec, line_number, source_file_path, is_constraint=True)
                continue

            if spec.startswith("-"):
                self.logger.debug("Line %d: ignoring option %r", line_number, spec)
                continue

            if "://" in spec or spec.startswith((".", "/")):
                self.logger.debug("Line %d: ignoring direct reference %r", line_number, spec)
                continue

            try:
                requirement = Requirement.parse(spec)
            except InvalidRequirement as exc:
                raise ParseError(
                    f"Invalid requirement: {exc.reason}",
                    line_number=line_number,
                    line_content=spec,
                    file_path=source,
                ) from exc

            if is_constraint_file:
                self._constraints.append(requirement)
            else:
                requirements.append(requirement)

        return requirements

    def get_constraints(self) -> List[Requirement]:
        """Return the constraints collected so far, in file order."""
        return list(self._constraints)

    def reset(self) -> None:
        self._included_files_stack = []
        self._constraints = []

    # ------------------------------------------------------------------
    # Directive handling (private)
    # ------------------------------------------------------------------

    def _handle_directive(
        self,
        directive_line: str,
        line_number: int,
        source_file_path: Optional[Path],
        *,
        is_constraint: bool,
    ) -> List[Requirement]:
        """Parse the file named by a ``-r`` or ``-c`` line."""
        target = _directive_argument(directive_line)
        if not target:
            raise ParseError(
                "Directive is missing a file path",
                line_number=line_number,
                line_content=directive_line,
                file_path=str(source_file_path) if source_file_path else None,
            )

        try:
            return self.parse_file(
                target,
                is_constraint_file=is_constraint,
                _parent_file=source_file_path,
            )
        except FileOperationError as exc:
            raise ParseError(
                f"Failed to read {target}: {exc.message}",
                line_number=line_number,
                line_content=directive_line,
                file_path=str(source_file_path) if source_file_path else None,
            ) from exc


# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------


def _logical_lines(content: str) -> Iterator[Tuple[int, str]]:
    """Yield ``(first_line_number, text)`` with ``\\`` continuations joined."""
    buffer: List[str] = []
    start = 0

    for line_number, raw in enumerate(content.splitlines(), start=1):
        line = raw.rstrip()
        if not buffer:
            start = line_number

        if line.endswith("\\"):
            buffer.append(line[:-1].strip())
            continue

        buffer.append(line.strip())
        yield start, " ".join(part for part in buffer if part)
        buffer = []

    if buffer:
        yield start, " ".join(part for part in buffer if part)


def _strip_comment(line: str) -> str:
    """Drop a full-line or inline comment (``#`` at start or after whitespace)."""
    stripped = line.strip()
    if stripped.startswith("#"):
        return ""

    for index, char in enumerate(stripped):
        if char == "#" and stripped[index - 1].isspace():
            return stripped[:index].strip()

    return stripped


def _is_directive(line: str, short: str, long: str) -> bool:
    if line.startswith(long):
        rest = line[len(long):]
        return not rest or rest[0] in " =\t"
    if line.startswith(short):
        rest = line[len(short):]
        return not rest or rest[0].isspace()
    return False


def _directive_argument(line: str) -> str:
    """Return the file argument of ``-r file`` or ``--requirement=file``."""
    if line.startswith("--"):
        _, _, rest = line.partition("=") if "=" in line.split()[0] else line.partition(" ")
        return rest.strip()
    return line[2:].strip()


def _resolve_file_path(file_path: Path, parent_file: Optional[Path]) -> Path:
    if parent_file is not None and not file_path.is_absolute():
        return (parent_file.parent / file_path).resolve()
    return file_path.resolve()
