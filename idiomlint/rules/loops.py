"""Flag range-for loops that copy non-trivial elements."""

from __future__ import annotations

from typing import FrozenSet, Optional, Sequence

from idiomlint.errors import UnresolvedContextError
from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode, TypeRef

from . import NodeContext, Rule, names_variable

KINDS = frozenset({NodeKind.RANGE_FOR_STATEMENT})
DEFAULT_SIZE_THRESHOLD = 16
MUTATING_UNARY = (
    NodeKind.PRE_INCREMENT_EXPR,
    NodeKind.PRE_DECREMENT_EXPR,
    NodeKind.POST_INCREMENT_EXPR,
    NodeKind.POST_DECREMENT_EXPR,
)

ITERATION_BY_VALUE = Rule(
    id="R07",
    title="Iterate non-trivial elements by const reference",
    rationale=(
        "'for (auto x : items)' copies every element. For class types or large "
        "aggregates that is a constructor and destructor call per iteration. Bind with "
        "'const auto&' unless the loop deliberately works on a copy."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)


def is_non_trivial(type_ref: TypeRef, size_threshold: int) -> bool:
    if type_ref.is_class:
        return True
    return type_ref.size is not None and type_ref.size > size_threshold


class IterationByValueDetector:
    """Report by-value range-for bindings of non-trivial element types.

    A body that assigns to (or increments) the bound variable keeps the
    copy: mutating a private copy may be intended.
    """

    def __init__(self, rule: Rule = ITERATION_BY_VALUE, size_threshold: int = DEFAULT_SIZE_THRESHOLD) -> None:
        self.rule = rule
        self.size_threshold = size_threshold

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        binding = node.child("binding")
        if binding is None or binding.attr("by_reference"):
            return []
        try:
            type_ref = context.require_type(binding)
        except UnresolvedContextError:
            return []
        if type_ref.category in ("reference", "pointer"):
            return []
        if not is_non_trivial(type_ref, self.size_threshold):
            return []
        name = binding.name
        if not name or self._is_modified(binding, node.child("body"), name):
            return []
        return [
            self.rule.finding(
                binding,
                f"range-for binds '{name}' by value and copies each '{type_ref.spelling}' element; "
                f"use 'const auto& {name}'",
            )
        ]

    def _is_modified(self, binding: SyntaxNode, body: Optional[SyntaxNode], name: str) -> bool:
        declared = binding.attr("is_modified")
        if declared is not None:
            return bool(declared)
        if body is None:
            return False
        for current in body.walk():
            if current.kind is NodeKind.ASSIGNMENT_EXPR and names_variable(current.child("lhs"), name):
                return True
            if current.kind in MUTATING_UNARY and names_variable(current.child("operand"), name):
                return True
            if (
                current.kind is NodeKind.MEMBER_CALL_EXPR
                and current.attr("const_method") is False
                and names_variable(current.child("object"), name)
            ):
                return True
        return False
