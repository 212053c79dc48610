"""Flag ``NULL`` arguments that select an integer overload."""

from __future__ import annotations

from typing import Any, FrozenSet, List, Mapping, Optional, Sequence

from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode, TypeRef

from . import NodeContext, Rule, strip_parens

KINDS = frozenset({NodeKind.CALL_EXPR, NodeKind.MEMBER_CALL_EXPR, NodeKind.CONSTRUCT_EXPR})
NULL_MACROS = frozenset({"NULL"})

NULL_ARGUMENT = Rule(
    id="R09",
    title="Use nullptr instead of NULL",
    rationale=(
        "NULL is an integer constant. Passed to an overloaded function it can pick the "
        "integer overload instead of the pointer one. nullptr has its own type that only "
        "converts to pointers."
    ),
    severity=Severity.ERROR,
    node_kinds=KINDS,
)


def is_null_macro(node: Optional[SyntaxNode]) -> bool:
    node = strip_parens(node)
    if node is None:
        return False
    if node.attr("macro") in NULL_MACROS:
        return True
    return node.kind is NodeKind.DECL_REF_EXPR and node.name in NULL_MACROS


class NullArgumentDetector:
    """Report ``f(NULL)`` where overload resolution picked an integer parameter.

    The resolved overload is read from the ``overload`` attribute. Without it
    the call is skipped: the macro alone is not enough to judge.
    """

    def __init__(self, rule: Rule = NULL_ARGUMENT) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        arguments = node.children_of("arguments")
        if not any(is_null_macro(argument) for argument in arguments):
            return []
        overload = node.attr("overload")
        if not isinstance(overload, Mapping):
            return []
        parameters = overload.get("parameter_types")
        if not isinstance(parameters, (list, tuple)):
            return []

        callee = overload.get("name") or node.attr("callee") or "callee"
        findings: List[Finding] = []
        for position, argument in enumerate(arguments):
            if not is_null_macro(argument) or position >= len(parameters):
                continue
            parameter = self._parameter_type(parameters[position])
            if parameter is None or not parameter.is_integral:
                continue
            findings.append(
                self.rule.finding(
                    argument,
                    f"NULL passed as argument {position + 1} of '{callee}' selects the integer "
                    f"parameter '{parameter.spelling}'; pass nullptr",
                )
            )
        return findings

    def _parameter_type(self, value: Any) -> Optional[TypeRef]:
        type_ref = TypeRef.from_value(value)
        if type_ref is None or not type_ref.resolved:
            return None
        return type_ref
