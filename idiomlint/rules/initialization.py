"""Initialization idioms: brace initialization and const locals."""

from __future__ import annotations

from typing import FrozenSet, Optional, Sequence

from idiomlint.errors import UnresolvedContextError
from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode, TypeRef

from . import NodeContext, Rule

KINDS = frozenset({NodeKind.VARIABLE_DECL})
NON_BRACE_STYLES = frozenset({"assignment", "paren"})
WRAPPERS = (NodeKind.PAREN_EXPR, NodeKind.IMPLICIT_CAST_EXPR)

NARROWING_INIT = Rule(
    id="R10",
    title="Prefer brace initialization to catch narrowing",
    rationale=(
        "'int n = 3.7;' or 'char c(300);' compile and silently lose information. "
        "Uniform (brace) initialization rejects narrowing conversions at compile time."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)

CONST_LOCAL = Rule(
    id="R11",
    title="Declare never-modified locals const",
    rationale=(
        "A local that is assigned once and never changed documents that fact when declared "
        "const, and the compiler then enforces it. Readers no longer have to scan the rest "
        "of the function for later writes."
    ),
    severity=Severity.INFO,
    node_kinds=KINDS,
)


class NarrowingInitDetector:
    """Report ``=`` or ``()`` initializers that narrow."""

    def __init__(self, rule: Rule = NARROWING_INIT) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        if node.attr("init_style") not in NON_BRACE_STYLES:
            return []
        init = node.child("init")
        narrowing = self._narrowing_cast(init)
        if not node.attr("narrowing") and narrowing is None:
            return []
        name = node.name or "variable"
        target = node.type_of()
        source = self._source_type(init, narrowing)
        if source is not None and target is not None:
            detail = f" from '{source.spelling}' to '{target.spelling}'"
        else:
            detail = ""
        return [
            self.rule.finding(
                node,
                f"'{name}' is initialized with a narrowing conversion{detail}; "
                "brace initialization would reject it",
            )
        ]

    def _narrowing_cast(self, init: Optional[SyntaxNode]) -> Optional[SyntaxNode]:
        current = init
        while current is not None and current.kind in WRAPPERS:
            if current.kind is NodeKind.IMPLICIT_CAST_EXPR and current.attr("narrowing"):
                return current
            current = current.child("operand")
        return None

    def _source_type(self, init: Optional[SyntaxNode], cast: Optional[SyntaxNode]) -> Optional[TypeRef]:
        source = cast.child("operand") if cast is not None else init
        if source is None:
            return None
        type_ref = source.type_of()
        return type_ref if type_ref is not None and type_ref.resolved else None


class ConstLocalDetector:
    """Report initialized locals that are never reassigned and not const.

    ``is_reassigned`` must be reported by the front-end; when it is missing
    the declaration is skipped.
    """

    def __init__(self, rule: Rule = CONST_LOCAL) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        if node.attr("is_reassigned") is not False:
            return []
        if node.attr("constexpr") or node.attr("address_taken") or node.attr("static"):
            return []
        if node.child("init") is None and not node.attr("has_init"):
            return []
        if context.scope() != "local":
            return []
        try:
            type_ref = context.require_type(node)
        except UnresolvedContextError:
            return []
        if type_ref.is_const or type_ref.category in ("reference", "array"):
            return []
        name = node.name or "variable"
        return [self.rule.finding(node, f"'{name}' is never modified after initialization; declare it const")]
