"""Flag raw fixed-size arrays at local and member scope."""

from __future__ import annotations

import re
from typing import FrozenSet, Optional, Sequence

from idiomlint.result import Finding
from idiomlint.severity import Severity
from idiomlint.syntax import NodeKind, SyntaxNode, TypeRef

from . import NodeContext, Rule

KINDS = frozenset({NodeKind.RAW_ARRAY_DECL, NodeKind.VARIABLE_DECL, NodeKind.FIELD_DECL})
REPORTED_SCOPES = frozenset({"local", "member"})
EXTENT_PATTERN = re.compile(r"\[(\d+)\]\s*$")

RAW_ARRAY = Rule(
    id="R05",
    title="Prefer std::array over raw arrays",
    rationale=(
        "Raw arrays decay to pointers, lose their size when passed around, cannot be "
        "copied or compared with the usual operators and offer no bounds-checked access. "
        "std::array has the same layout and cost while behaving like a regular value."
    ),
    severity=Severity.WARNING,
    node_kinds=KINDS,
)


class RawArrayDetector:
    """Report ``T name[N]`` declarations (including arrays of pointers).

    Function parameters never trigger: the front-end already adjusts them to
    pointers.
    """

    def __init__(self, rule: Rule = RAW_ARRAY) -> None:
        self.rule = rule

    def interested_in(self) -> FrozenSet[NodeKind]:
        return KINDS

    def visit(self, node: SyntaxNode, context: NodeContext) -> Sequence[Finding]:
        if node.attr("adjusted_parameter"):
            return []
        if context.scope() not in REPORTED_SCOPES:
            return []
        type_ref = node.type_of()
        if node.kind is not NodeKind.RAW_ARRAY_DECL:
            if type_ref is None or type_ref.category != "array":
                return []

        name = node.name or "<anonymous>"
        replacement = self._replacement(node, type_ref)
        form = "an array of pointers" if self._is_pointer_array(type_ref) else "a raw array"
        spelling = f" ({type_ref.spelling})" if type_ref is not None and type_ref.spelling else ""
        return [self.rule.finding(node, f"'{name}' is {form}{spelling}; use {replacement}")]

    def _is_pointer_array(self, type_ref: Optional[TypeRef]) -> bool:
        return type_ref is not None and type_ref.element is not None and type_ref.element.category == "pointer"

    def _replacement(self, node: SyntaxNode, type_ref: Optional[TypeRef]) -> str:
        extent = node.attr("extent")
        if extent is None and type_ref is not None:
            match = EXTENT_PATTERN.search(type_ref.base_spelling)
            if match:
                extent = match.group(1)
        element = type_ref.element.spelling if type_ref is not None and type_ref.element is not None else None
        if element and extent is not None:
            return f"std::array<{element}, {extent}>"
        return "std::array"
