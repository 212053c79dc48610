"""Prefer ``empty()`` over comparing ``size()`` with zero."""

from __future__ import annotations

from typing import FrozenSet, Sequence

from idiomlint.errors import UnresolvedContextError
from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule, strip_parens

KINDS = frozenset({NodeKind.BINARY_OPERATOR})
SIZE_METHODS = frozenset({"size", "length"})
# (operator, size call on the left?) -> the comparison asks "is empty"
EMPTINESS_TESTS = {
    ("==", True): True,
    ("==", False): True,
    ("!=", True): False,
    ("!=", False): False,
    (">", True): False,
    ("<", False): False,
}

SIZE_COMPARISON = Rule(
    id="R17",
    title="Use empty() to test for emptiness",
    rationale=(
        "empty() states the question directly and is constant time for every standard "
        "container, while size() is not guaranteed to be for all of them (e.g. some "
        "list implementations)."
    ),
    severity=Severity.INFO,
    node_kinds=KINDS,
)


class SizeComparisonDetector:
    """Report ``c.size() == 0``, ``c.size() != 0``, ``c.size() > 0`` and mirrors."""

    def __init__(self, rule: Rule = SIZE_COMPARISON) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        operator = node.attr("operator")
        lhs = strip_parens(node.child("lhs"))
        rhs = strip_parens(node.child("rhs"))
        if lhs is None or rhs is None:
            return []
        if self._is_size_call(lhs) and self._is_zero(rhs):
            call, size_on_left = lhs, True
        elif self._is_size_call(rhs) and self._is_zero(lhs):
            call, size_on_left = rhs, False
        else:
            return []
        tests_empty = EMPTINESS_TESTS.get((operator, size_on_left))
        if tests_empty is None:
            return []
        owner = strip_parens(call.child("object"))
        if owner is None:
            return []
        try:
            owner_type = context.require_type(owner)
        except UnresolvedContextError:
            return []
        if owner_type.category == "reference" and owner_type.element is not None:
            owner_type = owner_type.element
        if not owner_type.is_class:
            return []

        label = owner.attr("text") or owner.name or "container"
        method = call.attr("method")
        written = f"{label}.{method}() {operator} 0" if size_on_left else f"0 {operator} {label}.{method}()"
        replacement = f"{label}.empty()" if tests_empty else f"!{label}.empty()"
        return [self.rule.finding(node, f"'{written}' tests for emptiness; use '{replacement}'")]

    def _is_size_call(self, node: SyntaxNode) -> bool:
        return (
            node.kind is NodeKind.MEMBER_CALL_EXPR
            and node.attr("method") in SIZE_METHODS
            and not node.children_of("arguments")
        )

    def _is_zero(self, node: SyntaxNode) -> bool:
        if node.kind is not NodeKind.LITERAL or node.attr("literal_kind", "integer") != "integer":
            return False
        return str(node.attr("value")).rstrip("uUlLzZ") in ("0", "0x0", "00")
