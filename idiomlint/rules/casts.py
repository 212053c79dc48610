"""Flag C-style casts."""

from __future__ import annotations

from typing import FrozenSet, Sequence

from idiomlint.errors import UnresolvedContextError
from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule

KINDS = frozenset({NodeKind.C_STYLE_CAST_EXPR})

C_STYLE_CAST = Rule(
    id="R13",
    title="Use named casts instead of C-style casts",
    rationale=(
        "A C-style cast tries static_cast, const_cast and reinterpret_cast in turn and "
        "silently picks whichever compiles, so it can drop const or reinterpret bits "
        "without saying so. Named casts state the intent and are easy to search for."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)


class CStyleCastDetector:
    """Report ``(T)expr`` casts, except the ``(void)expr`` discard idiom."""

    def __init__(self, rule: Rule = C_STYLE_CAST) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        try:
            target = context.require_type(node)
        except UnresolvedContextError:
            return []
        if target.base_spelling == "void":
            return []
        suggestion = node.attr("equivalent_cast") or "static_cast"
        return [
            self.rule.finding(
                node,
                f"C-style cast to '{target.spelling}'; use {suggestion}<{target.spelling}> "
                "or another named cast",
            )
        ]
