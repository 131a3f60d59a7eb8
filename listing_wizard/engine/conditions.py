"""Reachability predicates compiled from YAML expression strings.

A question's ``when`` is a small boolean expression over earlier answers::

    when: "is_in_pid == 'yes'"
    when: "int(number_of_owners) >= 2 and len(repair_items) > 0"

Expressions are parsed with :mod:`ast` and checked against a whitelist when
the graph is built, so a typo fails at load time instead of mid-flow.
"""

import ast
import logging
import operator
from typing import Any, Callable, Dict, FrozenSet, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_COMPARATORS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
}

_FUNCTIONS: Dict[str, Callable] = {
    'int': int,
    'len': len,
}

_ALLOWED_NODES = (
    ast.Expression, ast.BoolOp, ast.And, ast.Or, ast.UnaryOp, ast.Not,
    ast.Compare, ast.Name, ast.Load, ast.Constant, ast.List, ast.Tuple,
    ast.Call,
) + tuple(_COMPARATORS)


class Condition:
    """
    Compiled predicate over the answers in a FieldStore.

    ``evaluate`` is tri-state: ``None`` means the answers so far cannot
    decide it. Calling the condition collapses that to ``False``.
    """

    def __init__(self, expression: Optional[str] = None):
        self.expression = expression.strip() if expression else None
        self._tree: Optional[ast.Expression] = None
        self.keys: FrozenSet[str] = frozenset()
        if self.expression:
            self._tree = self._compile(self.expression)
            self.keys = frozenset(self._referenced_keys(self._tree))

    @classmethod
    def always(cls) -> 'Condition':
        return cls(None)

    @property
    def is_constant(self) -> bool:
        return self._tree is None

    def evaluate(self, store) -> Optional[bool]:
        """Evaluate against ``store`` (a FieldStore or plain mapping).

        Returns:
            True or False, or None when the result depends on an absent key.
        """
        if self._tree is None:
            return True
        values = {key: store.get(key) for key in self.keys if key in store}
        try:
            return bool(_evaluate(self._tree.body, values))
        except _Unknown:
            return None
        except (TypeError, ValueError) as e:
            logger.debug("Condition %r evaluated to False: %s", self.expression, e)
            return False

    def __call__(self, store) -> bool:
        return self.evaluate(store) is True

    def __repr__(self) -> str:
        return f"Condition({self.expression!r})"

    @staticmethod
    def _compile(expression: str) -> ast.Expression:
        try:
            tree = ast.parse(expression, mode='eval')
        except SyntaxError as e:
            raise ConfigurationError(f"Invalid condition {expression!r}: {e.msg}") from e

        for node in ast.walk(tree):
            if not isinstance(node, _ALLOWED_NODES):
                raise ConfigurationError(
                    f"Unsupported syntax in condition {expression!r}: {type(node).__name__}"
                )
            if isinstance(node, ast.Call):
                if (not isinstance(node.func, ast.Name)
                        or node.func.id not in _FUNCTIONS
                        or node.keywords):
                    raise ConfigurationError(
                        f"Only {sorted(_FUNCTIONS)} may be called in condition {expression!r}"
                    )
        return tree

    @staticmethod
    def _referenced_keys(tree: ast.Expression) -> set:
        function_names = {id(node.func) for node in ast.walk(tree) if isinstance(node, ast.Call)}
        return {
            node.id for node in ast.walk(tree)
            if isinstance(node, ast.Name) and id(node) not in function_names
        }


class _Unknown(Exception):
    """Raised while evaluating when an operand needs an unanswered key."""


def _evaluate_bool_op(node: ast.BoolOp, values: Dict[str, Any]) -> bool:
    """Three-valued and/or: the first operand that decides the result wins.

    ``a == 'no' and b`` is False as soon as ``a`` rules it out, even while
    ``b`` is unanswered. Only an undecided result is unknown.
    """
    deciding = not isinstance(node.op, ast.And)
    unknown = False
    for operand in node.values:
        try:
            if bool(_evaluate(operand, values)) == deciding:
                return deciding
        except _Unknown:
            unknown = True
    if unknown:
        raise _Unknown()
    return not deciding


def _evaluate(node: ast.AST, values: Dict[str, Any]) -> Any:
    if isinstance(node, ast.BoolOp):
        return _evaluate_bool_op(node, values)

    if isinstance(node, ast.UnaryOp):
        return not _evaluate(node.operand, values)

    if isinstance(node, ast.Compare):
        left = _evaluate(node.left, values)
        for op, comparator in zip(node.ops, node.comparators):
            right = _evaluate(comparator, values)
            if not _COMPARATORS[type(op)](left, right):
                return False
            left = right
        return True

    if isinstance(node, ast.Name):
        if node.id not in values:
            raise _Unknown(node.id)
        return values[node.id]

    if isinstance(node, ast.Constant):
        return node.value

    if isinstance(node, (ast.List, ast.Tuple)):
        return [_evaluate(element, values) for element in node.elts]

    if isinstance(node, ast.Call):
        return _FUNCTIONS[node.func.id](*[_evaluate(arg, values) for arg in node.args])

    raise ConfigurationError(f"Unsupported expression node: {type(node).__name__}")
