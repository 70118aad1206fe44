"""
Requirement data model for deplock.

A :class:`Requirement` is a package name plus version clauses, extras and an
optional environment marker. Requirements come from three places: command
line arguments, requirements-file lines, and the ``requires_dist`` entries
of fetched packages. All three go through :meth:`Requirement.parse`.

Grammar accepted by the parser::

    requirement := name [ "[" extras "]" ] [ clauses ] [ ";" marker ]
    clauses     := clause ( "," clause )*     # optionally wrapped in ( )
    clause      := ( "==" | "!=" | "<=" | ">=" | "~=" | "<" | ">" ) version
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from deplock.constants import VERSION_OPERATORS
from deplock.exceptions import InvalidRequirement


class VersionOp(Enum):
    """Comparison operator of a single version clause."""

    EQ = "=="
    NOT_EQ = "!="
    LT = "<"
    LT_EQ = "<="
    GT = ">"
    GT_EQ = ">="
    COMPATIBLE = "~="

    @classmethod
    def from_symbol(cls, symbol: str) -> "VersionOp":
        """Return the operator for a textual symbol such as ``">="``."""
        return cls(symbol)


@dataclass(frozen=True)
class VersionSpec:
    """One operator + version constraint clause, e.g. ``>=2.0``."""

    op: VersionOp
    version: str

    def __str__(self) -> str:
        return f"{self.op.value}{self.version}"


def normalize_name(name: str) -> str:
    """Normalize a package name: lowercase, underscores become hyphens.

    Example::

        >>> normalize_name("Flask_Login")
        'flask-login'
    """
    return name.lower().replace("_", "-")


def _is_name_char(char: str) -> bool:
    return (char.isascii() and char.isalnum()) or char in "_-."


@dataclass
class Requirement:
    """
    A parsed dependency declaration.

    Attributes:
        name: Normalized package name.
        specs: Ordered version clauses; all must hold.
        extras: Requested extras, in declaration order.
        marker: Environment marker text, verbatim, or ``None``.
    """

    name: str
    specs: List[VersionSpec] = field(default_factory=list)
    extras: List[str] = field(default_factory=list)
    marker: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Requirement":
        """Parse requirement text.

        Raises:
            InvalidRequirement: The name is missing, the extras list is not
                closed, a clause starts with an unknown operator, or a
                clause has no version.

        Example::

            >>> req = Requirement.parse("Requests[socks]>=2.0,<3; os_name == 'nt'")
            >>> req.name, [str(s) for s in req.specs], req.extras, req.marker
            ('requests', ['>=2.0', '<3'], ['socks'], "os_name == 'nt'")
        """
        stripped = text.strip()

        body, sep, marker_text = stripped.partition(";")
        marker: Optional[str] = marker_text.strip() if sep else None
        body = body.strip()

        end = 0
        while end < len(body) and _is_name_char(body[end]):
            end += 1

        raw_name = body[:end]
        if not raw_name:
            raise InvalidRequirement(text, "missing package name")

        remainder = body[end:].lstrip()
        extras: List[str] = []

        if remainder.startswith("["):
            close = remainder.find("]")
            if close == -1:
                raise InvalidRequirement(text, "unterminated extras list")
            extras = [e.strip() for e in remainder[1:close].split(",") if e.strip()]
            remainder = remainder[close + 1 :].strip()

        return cls(
            name=normalize_name(raw_name),
            specs=_parse_specs(text, remainder),
            extras=extras,
            marker=marker or None,
        )

    @property
    def spec_string(self) -> str:
        """Version clauses joined with commas (empty when unconstrained)."""
        return ",".join(str(spec) for spec in self.specs)

    def to_string(self) -> str:
        """Render the requirement back to PEP 508-like text."""
        result = self.name
        if self.extras:
            result += f"[{','.join(self.extras)}]"
        result += self.spec_string
        if self.marker:
            result += f"; {self.marker}"
        return result

    def __str__(self) -> str:
        return self.to_string()


def _parse_specs(text: str, clauses: str) -> List[VersionSpec]:
    """Parse the comma-separated version clauses of a requirement."""
    if clauses.startswith("(") and clauses.endswith(")"):
        clauses = clauses[1:-1].strip()

    if not clauses:
        return []

    specs: List[VersionSpec] = []
    for clause in clauses.split(","):
        clause = clause.strip()
        op, version = _split_clause(text, clause)
        specs.append(VersionSpec(op=op, version=version))

    return specs


def _split_clause(text: str, clause: str) -> Tuple[VersionOp, str]:
    for symbol in VERSION_OPERATORS:
        if clause.startswith(symbol):
            version = clause[len(symbol) :].strip()
            if not version:
                raise InvalidRequirement(text, f"empty version in clause {clause!r}")
            if version.startswith("="):
                raise InvalidRequirement(text, f"unsupported operator in clause {clause!r}")
            return VersionOp.from_symbol(symbol), version

    raise InvalidRequirement(text, f"unrecognized operator in clause {clause!r}")


def parse_requirement(text: str) -> Requirement:
    """Module-level shortcut for :meth:`Requirement.parse`."""
    return Requirement.parse(text)
