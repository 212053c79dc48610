"""Flag large or class-type parameters passed by value."""

from __future__ import annotations

from typing import FrozenSet, Sequence

from idiomlint.errors import UnresolvedContextError
from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule
from .loops import DEFAULT_SIZE_THRESHOLD, is_non_trivial

KINDS = frozenset({NodeKind.PARAMETER_DECL})
CALLABLES = (NodeKind.FUNCTION_DECL, NodeKind.METHOD_DECL, NodeKind.CONSTRUCTOR_DECL, NodeKind.LAMBDA_EXPR)

BY_VALUE_PARAMETER = Rule(
    id="R12",
    title="Pass non-trivial read-only parameters by const reference",
    rationale=(
        "Passing a class object by value copies it on every call. When the function only "
        "reads the parameter, 'const T&' gives the same guarantees without the copy."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)


class ByValueParameterDetector:
    """Report by-value parameters of non-trivial type that the body never modifies.

    Sink parameters that are moved from are left alone.
    """

    def __init__(self, rule: Rule = BY_VALUE_PARAMETER, size_threshold: int = DEFAULT_SIZE_THRESHOLD) -> None:
        self.rule = rule
        self.size_threshold = size_threshold

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        function = context.nearest(*CALLABLES)
        if function is None or function.child("body") is None:
            return []
        if node.attr("is_modified") is not False or node.attr("moved_from"):
            return []
        try:
            type_ref = context.require_type(node)
        except UnresolvedContextError:
            return []
        if type_ref.category in ("reference", "pointer", "array"):
            return []
        if not is_non_trivial(type_ref, self.size_threshold):
            return []
        name = node.name or "<unnamed>"
        return [
            self.rule.finding(
                node,
                f"parameter '{name}' copies a '{type_ref.spelling}' on every call; "
                f"pass it as 'const {type_ref.base_spelling}&'",
            )
        ]
