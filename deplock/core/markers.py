"""Environment marker evaluation.

Markers gate dependencies on the target environment, e.g.
``pywin32>=300; sys_platform == 'win32'``. The evaluator understands a
deliberately small grammar:

- the first textual ``" or "`` splits the expression into ``left or right``;
- failing that, the first ``" and "`` splits it into ``left and right``;
- otherwise the whole text is one ``variable OP 'literal'`` condition.

Because ``or`` is split before ``and``, flat expressions such as
``a and b or c`` get the usual precedence. Parentheses are not parsed; a
single condition wrapped in one pair of parentheses has them removed and
nothing more.
"""

from __future__ import annotations

from typing import Dict, Optional

from deplock.models.environment import Environment
from deplock.utils.logger import get_logger
from deplock.utils.version_utils import compare_versions

logger = get_logger("markers")

__all__ = ["MarkerEvaluator", "evaluate_marker"]

# Detection order matters: "!=" must win over "=", "<=" over "<", and
# " not in " over " in ".
_CONDITION_OPERATORS = ("!=", "==", "<=", ">=", "<", ">", " not in ", " in ")


def _unquote(text: str) -> str:
    return text.strip().strip("'\"")


class MarkerEvaluator:
    """Evaluates marker expressions against one :class:`Environment`.

    Unknown variables (including ``extra``) read as the empty string, so a
    comparison against them only holds when the literal is empty too.

    Example::

        >>> env = Environment(platform="linux", python_version="3.11")
        >>> MarkerEvaluator(env).evaluate("sys_platform == 'linux' and python_version >= '3.8'")
        True
    """

    def __init__(self, environment: Environment) -> None:
        self.environment = environment
        self._variables: Dict[str, str] = environment.to_marker_vars()

    def evaluate(self, marker: Optional[str]) -> bool:
        """Return True if *marker* holds; an empty marker always holds."""
        if marker is None or not marker.strip():
            return True
        return self._evaluate_expression(marker)

    def _evaluate_expression(self, expression: str) -> bool:
        head, sep, tail = expression.partition(" or ")
        if sep:
            return self._evaluate_expression(head) or self._evaluate_expression(tail)

        head, sep, tail = expression.partition(" and ")
        if sep:
            return self._evaluate_expression(head) and self._evaluate_expression(tail)

        return self._evaluate_condition(expression)

    def _evaluate_condition(self, condition: str) -> bool:
        condition = condition.strip()
        if condition.startswith("(") and condition.endswith(")"):
            condition = condition[1:-1].strip()

        for op in _CONDITION_OPERATORS:
            variable, sep, literal = condition.partition(op)
            if sep:
                return self._compare(_unquote(variable), op.strip(), _unquote(literal))

        logger.debug("Marker condition has no operator: %r", condition)
        return False

    def _compare(self, variable: str, op: str, literal: str) -> bool:
        value = self._variables.get(variable, "")

        if op == "==":
            return value == literal
        if op == "!=":
            return value != literal
        if op == "in":
            return value in literal
        if op == "not in":
            return value not in literal

        cmp = compare_versions(value, literal)
        if op == "<":
            return cmp < 0
        if op == "<=":
            return cmp <= 0
        if op == ">":
            return cmp > 0
        return cmp >= 0


def evaluate_marker(marker: Optional[str], environment: Environment) -> bool:
    """One-shot helper around :class:`MarkerEvaluator`."""
    return MarkerEvaluator(environment).evaluate(marker)
