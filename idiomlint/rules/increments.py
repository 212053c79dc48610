"""Prefer pre-increment/decrement on class-type operands."""

from __future__ import annotations

from typing import FrozenSet, Optional, Sequence, Tuple

from idiomlint.errors import UnresolvedContextError
from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule, strip_parens

KINDS = frozenset({NodeKind.POST_INCREMENT_EXPR, NodeKind.POST_DECREMENT_EXPR})
WRAPPERS = (NodeKind.PAREN_EXPR, NodeKind.IMPLICIT_CAST_EXPR)

POST_INCREMENT = Rule(
    id="R04",
    title="Prefer pre-increment for object types",
    rationale=(
        "For class types, 'it++' must copy the object to return its old value. When that "
        "value is discarded the copy is wasted work the optimizer may not remove across an "
        "overloaded operator call. '++it' advances in place."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)


class PostIncrementDetector:
    """Report ``obj++`` / ``obj--`` on class types when the old value is discarded."""

    def __init__(self, rule: Rule = POST_INCREMENT) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        operand = strip_parens(node.child("operand"))
        if operand is None:
            return []
        try:
            type_ref = context.require_type(operand)
        except UnresolvedContextError:
            return []
        if type_ref.category == "reference" and type_ref.element is not None:
            type_ref = type_ref.element
        if not type_ref.is_class:
            return []
        if not self._result_discarded(context):
            return []

        operator = "++" if node.kind is NodeKind.POST_INCREMENT_EXPR else "--"
        verb = "increment" if operator == "++" else "decrement"
        name = operand.attr("text") or operand.name or "operand"
        return [
            self.rule.finding(
                node,
                f"post-{verb} of '{name}' ({type_ref.spelling}) copies a value that is never used; "
                f"write '{operator}{name}'",
            )
        ]

    def _result_discarded(self, context: NodeContext) -> bool:
        parent, role = self._effective_parent(context)
        if parent is None:
            return False
        if parent.kind is NodeKind.EXPR_STATEMENT:
            return True
        if parent.kind is NodeKind.FOR_STATEMENT and role == "increment":
            return True
        if parent.kind is NodeKind.BINARY_OPERATOR and parent.attr("operator") == ",":
            if role == "lhs":
                return True
            return self._result_discarded(context.at(parent))
        if parent.kind is NodeKind.C_STYLE_CAST_EXPR:
            target = parent.type_of()
            return target is not None and target.base_spelling == "void"
        return False

    def _effective_parent(self, context: NodeContext) -> Tuple[Optional[SyntaxNode], Optional[str]]:
        current = context
        parent = current.parent
        while parent is not None and parent.kind in WRAPPERS:
            current = current.at(parent)
            parent = current.parent
        return parent, current.role
