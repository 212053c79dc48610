"""Flag stream insertions of ``std::endl``."""

from __future__ import annotations

from typing import FrozenSet, Optional, Sequence

from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode

from . import NodeContext, Rule, strip_parens

KINDS = frozenset({NodeKind.STREAM_INSERT_EXPR})
FLUSHING_NEWLINES = frozenset({"std::endl", "::std::endl"})

FLUSHING_NEWLINE = Rule(
    id="R02",
    title="Prefer '\\n' over std::endl",
    rationale=(
        "std::endl writes a newline and then flushes the stream. Flushing on every line "
        "defeats output buffering and is a common hidden cost in loops. Insert '\\n' and "
        "flush explicitly (std::flush) where it is actually needed."
    ),
    severity=Severity.INFO,
    node_kinds=KINDS,
)


class FlushingNewlineDetector:
    """Report ``stream << std::endl``."""

    def __init__(self, rule: Rule = FLUSHING_NEWLINE) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        operand = strip_parens(node.child("operand"))
        if operand is None or not self._is_endl(operand):
            return []
        stream = strip_parens(node.child("stream"))
        target = self._stream_label(stream)
        return [
            self.rule.finding(
                operand,
                f"std::endl flushes {target} after the newline; insert '\\n' instead",
            )
        ]

    def _is_endl(self, operand: SyntaxNode) -> bool:
        if operand.kind is not NodeKind.DECL_REF_EXPR:
            return False
        if operand.attr("resolved", True) is False:
            return False
        qualified = operand.attr("qualified_name")
        if qualified:
            return str(qualified) in FLUSHING_NEWLINES
        return operand.name == "endl" and operand.attr("namespace") == "std"

    def _stream_label(self, stream: Optional[SyntaxNode]) -> str:
        # Chained insertions nest: (cout << a) << endl. Report the innermost stream.
        while stream is not None and stream.kind is NodeKind.STREAM_INSERT_EXPR:
            stream = strip_parens(stream.child("stream"))
        if stream is not None and stream.name:
            return f"'{stream.attr('qualified_name') or stream.name}'"
        return "the stream"
